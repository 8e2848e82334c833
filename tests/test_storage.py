import os

from app.services.storage import storage_name


def test_storage_name_prefixes_timestamp_and_drops_directories():
    assert storage_name("resume.pdf", now_ms=1700000000000) == "1700000000000_resume.pdf"
    assert storage_name("../../etc/passwd", now_ms=1) == "1_passwd"
    assert storage_name("C:\\Users\\me\\cv.docx", now_ms=1) == "1_cv.docx"


def test_upload_writes_file_and_returns_public_url(blob_storage):
    url = blob_storage.upload("1_cv final.pdf", b"%PDF", "application/pdf")

    assert url == "/files/1_cv%20final.pdf"
    with open(os.path.join(blob_storage.root, "1_cv final.pdf"), "rb") as f:
        assert f.read() == b"%PDF"


def test_path_from_url_round_trips(blob_storage):
    url = blob_storage.upload("1_cv final.pdf", b"x")
    assert blob_storage.path_from_url(url) == "1_cv final.pdf"
    assert blob_storage.path_from_url("http://elsewhere.test/other/1_cv.pdf") is None
    assert blob_storage.path_from_url(None) is None


def test_remove_is_idempotent(blob_storage):
    blob_storage.upload("1_cv.txt", b"x")
    blob_storage.remove("1_cv.txt")
    blob_storage.remove("1_cv.txt")
    assert not os.path.exists(os.path.join(blob_storage.root, "1_cv.txt"))
