from core.preview_data import PreviewData, PreviewDataImage


def test_empty_preview_data_has_no_data():
    assert PreviewData().has_data is False
    assert PreviewData(link="https://example.com").has_data is False


def test_any_renderable_field_counts_as_data():
    assert PreviewData(title="t").has_data is True
    assert PreviewData(description="d").has_data is True
    image = PreviewDataImage(url="https://example.com/a.png", width=10, height=10)
    assert PreviewData(image=image).has_data is True


def test_has_only_image():
    image = PreviewDataImage(url="https://example.com/a.png", width=10, height=10)
    assert PreviewData(image=image).has_only_image is True
    assert PreviewData(title="t", image=image).has_only_image is False
    assert PreviewData(title="t").has_only_image is False


def test_aspect_ratio():
    assert PreviewData(title="t").aspect_ratio is None
    wide = PreviewDataImage(url="u", width=16, height=9)
    assert PreviewData(image=wide).aspect_ratio == 16 / 9
    square = PreviewDataImage(url="u", width=40, height=40)
    assert PreviewData(image=square).aspect_ratio == 1
    flat = PreviewDataImage(url="u", width=40, height=0)
    assert PreviewData(image=flat).aspect_ratio is None


def test_dict_conversion_omits_missing_fields():
    data = PreviewData(
        link="https://example.com",
        title="Example",
        image=PreviewDataImage(url="https://example.com/a.png", width=640, height=480),
    )
    as_dict = data.to_dict()
    assert as_dict == {
        "link": "https://example.com",
        "title": "Example",
        "image": {"url": "https://example.com/a.png", "width": 640, "height": 480},
    }
    assert PreviewData.from_dict(as_dict) == data


def test_from_dict_none_and_malformed_image():
    assert PreviewData.from_dict(None) is None
    data = PreviewData.from_dict({"title": "t", "image": {"width": 1, "height": 1}})
    assert data.title == "t"
    assert data.image is None
    data = PreviewData.from_dict({"image": {"url": "u", "width": "wide", "height": 1}})
    assert data.image is None
    assert PreviewData.from_dict({}) == PreviewData()
