import pytest

from matching_api.middleware.rate_limit import parse_rate, rate_for_path


@pytest.mark.parametrize(
    "rate, expected",
    [
        ("60/minute", (60, 60)),
        ("5/min", (5, 60)),
        ("10 / second", (10, 1)),
        ("1000/day", (1000, 86400)),
    ],
)
def test_parse_rate(rate, expected):
    assert parse_rate(rate) == expected


@pytest.mark.parametrize("rate", ["60", "60/fortnight", "many/minute"])
def test_parse_rate_rejects_garbage(rate):
    with pytest.raises(ValueError):
        parse_rate(rate)


def test_batch_endpoint_has_tighter_default_limit():
    assert rate_for_path("/admin/matching/embeddings/batch") == "5/minute"
    assert rate_for_path("/admin/matching/embeddings/jobs") == "60/minute"
