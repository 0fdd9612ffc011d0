from datetime import datetime, timedelta, timezone

from telar.utils import as_utc, months_before, sanitize_text


def test_sanitize_removes_script_tags():
    out = sanitize_text("<script>alert(1)</script>Entregado")
    assert "<script>" not in out
    assert out.endswith("Entregado")


def test_sanitize_strips_nul_and_whitespace():
    assert sanitize_text("  porteria\x00  ") == "porteria"
    assert sanitize_text(None) == ""


def test_months_before_clamps_short_months():
    assert months_before(datetime(2026, 5, 31, 12, 0), 3) == datetime(2026, 2, 28, 12, 0)
    assert months_before(datetime(2026, 1, 15), 3) == datetime(2025, 10, 15)


def test_as_utc_marks_naive_and_converts_aware():
    assert as_utc(datetime(2026, 3, 1, 8, 0)) == datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)
    bogota = timezone(timedelta(hours=-5))
    converted = as_utc(datetime(2026, 3, 1, 8, 0, tzinfo=bogota))
    assert converted.tzinfo == timezone.utc
    assert converted.hour == 13
    assert as_utc(None) is None
