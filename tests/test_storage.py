import pytest

from lor_tracker.core.errors import NotFoundError
from lor_tracker.services.storage import LocalBlobStore, sanitize_filename


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("letter.pdf", "letter.pdf"),
        ("../../etc/passwd", "....etcpasswd"),
        ('a<b>c:"d"|e?f*.docx', "abcdef.docx"),
        ("  ", "upload.bin"),
        (None, "upload.bin"),
        ("x" * 300 + ".pdf", "x" * 255),
    ],
)
def test_sanitize_filename(raw, expected):
    assert sanitize_filename(raw) == expected


def test_save_resolve_and_delete(tmp_path):
    store = LocalBlobStore(tmp_path)
    blob = store.save(b"%PDF-1.4", prefix="drafts/4", original_name="Letter.PDF")

    assert blob.storage_key.startswith("drafts/4/")
    assert blob.storage_key.endswith(".pdf")
    assert blob.size == 8
    assert store.resolve_path(blob.storage_key).read_bytes() == b"%PDF-1.4"

    store.delete(blob.storage_key)
    assert not (tmp_path / blob.storage_key).exists()
    with pytest.raises(NotFoundError):
        store.resolve_path(blob.storage_key)
    # Deleting twice is harmless.
    store.delete(blob.storage_key)


def test_keys_are_unique(tmp_path):
    store = LocalBlobStore(tmp_path)
    first = store.save(b"a", prefix="certificates/1", original_name="gre.pdf")
    second = store.save(b"b", prefix="certificates/1", original_name="gre.pdf")
    assert first.storage_key != second.storage_key


def test_keys_cannot_escape_the_base_dir(tmp_path):
    store = LocalBlobStore(tmp_path / "uploads")
    (tmp_path / "secret.txt").write_text("nope")

    with pytest.raises(NotFoundError):
        store.resolve_path("../secret.txt")
    store.delete("../secret.txt")
    assert (tmp_path / "secret.txt").read_text() == "nope"
