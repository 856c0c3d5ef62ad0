import base64

from casemap.core.evidence.evidence_media import attach_image_urls, image_data_url
from casemap.core.evidence.evidence_record import EvidenceRecord
from casemap.core.map_module.map_logic import Point
from casemap.utils.media_codec import mime_from_key, parse_data_url, to_data_url


def test_data_url_round_trip():
    url = to_data_url(b"\x89PNGdata", "image/png")
    assert url.startswith("data:image/png;base64,")
    parsed = parse_data_url(url)
    assert parsed.payload == b"\x89PNGdata"
    assert parsed.content_type == "image/png"


def test_parse_data_url_rejects_garbage():
    assert parse_data_url("https://example.com/a.png") is None
    assert parse_data_url("data:image/png;base64,***") is None
    assert parse_data_url(None) is None
    assert parse_data_url("data:image/bmp;base64," + base64.b64encode(b"x").decode()).content_type == "image/bmp"


def test_mime_from_key_defaults_to_png():
    assert mime_from_key("case/photos/a.JPG") == "image/jpeg"
    assert mime_from_key("case/photos/a.webp") == "image/webp"
    assert mime_from_key("case/photos/noext") == "image/png"
    assert mime_from_key("case/photos/a.tiff") == "image/png"


def test_image_data_url_failure_is_none():
    def fetch(key):
        raise FileNotFoundError(key)

    assert image_data_url("a.png", fetch) is None
    assert image_data_url("", fetch) is None


def test_attach_image_urls_fetches_each_key_once():
    calls = []

    def fetch(key):
        calls.append(key)
        return b"img-" + key.encode()

    recs = [
        EvidenceRecord(id="a", pixel=Point(0, 0), image_key="p/a.jpg"),
        EvidenceRecord(id="b", pixel=Point(0, 0), image_key=" p/a.jpg "),
        EvidenceRecord(id="c", pixel=Point(0, 0)),
    ]
    attach_image_urls(recs, fetch)
    assert calls == ["p/a.jpg"]
    assert recs[0].image_url == recs[1].image_url
    assert recs[0].image_url.startswith("data:image/jpeg;base64,")
    assert recs[2].image_url is None
