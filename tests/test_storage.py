import pytest

from rangers_portal.services.storage import InvalidObjectPath, path_from_url, safe_filename


def test_safe_filename():
    assert safe_filename("../../etc/pass wd.pdf") == "pass_wd.pdf"
    assert safe_filename("") == "file"


@pytest.mark.parametrize("path", ["../secret", "a/../../b", "/"])
def test_resolve_rejects_escaping_paths(storage, path):
    with pytest.raises(InvalidObjectPath):
        storage.resolve(path)


def test_upload_overwrites(storage):
    storage.upload(b"one", "CR-1/logo/logo.png")
    stored = storage.upload(b"two", "CR-1/logo/logo.png")
    assert storage.resolve(stored.path).read_bytes() == b"two"


def test_path_from_url():
    url = "https://project.example.co/storage/v1/object/public/applications/CR-1/cv/cv.pdf"
    assert path_from_url(url) == "CR-1/cv/cv.pdf"
    assert path_from_url("https://cdn.example.com/applications/CR-1/logo/l.png") == "CR-1/logo/l.png"
    assert path_from_url("https://elsewhere.example.com/file.pdf") is None
    assert path_from_url(None) is None


def test_data_service_rejects_bad_upload_path(data_service):
    result = data_service.upload_object(b"x", "../escape.pdf")
    assert result.kind.value == "validation"
