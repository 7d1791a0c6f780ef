import pytest

from chathub.domain.chat.attachments import media_type_for, normalize_attachments
from chathub.domain.chat.models import MediaType


def test_normalize_accepts_camel_and_snake_case():
    refs = normalize_attachments(
        [
            {"filePath": "Uploads/a.png", "fileName": "a.png", "mediaType": 0},
            {"file_path": "Uploads\\b.pdf", "file_name": "b.pdf", "media_type": "document"},
        ]
    )

    assert [r.media_type for r in refs] == [MediaType.IMAGE, MediaType.DOCUMENT]
    assert refs[1].file_path == "Uploads/b.pdf"


def test_media_type_is_inferred_from_extension():
    refs = normalize_attachments([{"filePath": "Uploads/c.MOV", "fileName": "clip.MOV"}])

    assert refs[0].media_type is MediaType.VIDEO


@pytest.mark.parametrize(
    "name, expected",
    [
        ("photo.jpeg", MediaType.IMAGE),
        ("anim.gif", MediaType.GIF),
        ("notes.txt", MediaType.DOCUMENT),
        ("archive.zip", MediaType.OTHER),
        ("noext", MediaType.OTHER),
    ],
)
def test_media_type_for(name, expected):
    assert media_type_for(name) is expected


@pytest.mark.parametrize(
    "items",
    [
        [{"filePath": "Uploads/x.zip", "fileName": "x.zip"}],
        [{"filePath": "Uploads/x.png", "fileName": "x.png", "mediaType": 99}],
        [{"filePath": "Uploads/x.png", "fileName": "x.png", "mediaType": "sticker"}],
        [{"fileName": "x.png"}],
        ["Uploads/x.png"],
        {"filePath": "Uploads/x.png", "fileName": "x.png"},
        5,
        True,
    ],
)
def test_invalid_attachments_raise(items):
    with pytest.raises(ValueError):
        normalize_attachments(items)


def test_attachment_count_limit():
    items = [{"filePath": f"Uploads/{i}.png", "fileName": f"{i}.png"} for i in range(3)]

    with pytest.raises(ValueError, match="at most 2"):
        normalize_attachments(items, max_items=2)


def test_empty_input_yields_empty_list():
    assert normalize_attachments(None) == []
    assert normalize_attachments([]) == []
