# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import resume, evaluation

# Explicit class exports for cleaner imports
from .resume import Resume
from .evaluation import Evaluation

__all__ = [
    "Resume",
    "Evaluation",
]
