import json

import requests

from gigcarousel import gigs as gig_source
from gigcarousel.config import CarouselConfig
from main import build_plan, main, process_location


def st_kilda_gigs(gig_factory, count):
    return [
        gig_factory(f"Band {i}", start=f"{18 + i // 30:02d}:{i % 60:02d}", venue_id=f"v{i}")
        for i in range(count)
    ]


def test_process_location_writes_plan(tmp_path, gig_factory):
    gigs = st_kilda_gigs(gig_factory, 3) + [gig_factory("Elsewhere", address="1 Rd, Fitzroy 3065")]
    plan = process_location(
        "St Kilda",
        gigs,
        "2025-01-31",
        CarouselConfig(),
        tmp_path,
        venue_handles={"v0": "@bandvenue"},
    )
    assert plan["gig_count"] == 3
    assert plan["truncated"] is False
    assert len(plan["captions"]) == 1 + len(plan["slides"])
    assert "(@bandvenue)" in plan["captions"][1]
    saved = json.loads((tmp_path / "2025-01-31_st-kilda_plan.json").read_text(encoding="utf-8"))
    assert saved == plan


def test_process_location_reports_truncation(tmp_path, gig_factory, capsys):
    config = CarouselConfig(container_height_px=72, max_content_slides=2)
    plan = process_location("St Kilda", st_kilda_gigs(gig_factory, 5), "2025-01-31", config, tmp_path)
    assert plan["truncated"] is True
    assert plan["dropped_gigs"] == 3
    assert "Only showing 2 of 5 slides" in capsys.readouterr().out


def test_process_location_publish_in_test_mode(tmp_path, gig_factory):
    plan = process_location(
        "St Kilda",
        st_kilda_gigs(gig_factory, 2),
        "2025-01-31",
        CarouselConfig(),
        tmp_path,
        publish=True,
        test_mode=True,
    )
    assert plan["post_id"] == "TEST_MODE"
    assert len(plan["images"]) == 2


def test_build_plan_lists_slides(gig_factory):
    from gigcarousel.packer import SlideSet

    gig = gig_factory("Solo")
    plan = build_plan(SlideSet(slides=((gig,),)), "St Kilda", "2025-01-31")
    assert plan["slides"] == [[{"name": "Solo", "venue": "The Espy", "venue_id": "v1", "start_time": "20:00"}]]


def test_main_runs_each_location(monkeypatch, tmp_path, gig_factory):
    calls = []

    def fake_fetch(location, date_from, base_url=None):
        calls.append((location, date_from))
        return st_kilda_gigs(gig_factory, 4)

    monkeypatch.setattr(gig_source, "fetch_gigs", fake_fetch)
    exit_code = main(["--date", "2025-01-31", "--output-dir", str(tmp_path)])
    assert exit_code == 0
    assert calls == [("melbourne", "2025-01-31")]
    assert (tmp_path / "2025-01-31_st-kilda_plan.json").exists()
    assert (tmp_path / "2025-01-31_fitzroy-collingwood-and-richmond_plan.json").exists()


def test_main_reports_fetch_failure(monkeypatch, tmp_path):
    def failing_fetch(*args, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(gig_source, "fetch_gigs", failing_fetch)
    assert main(["--date", "2025-01-31", "--output-dir", str(tmp_path)]) == 1


def test_main_rejects_zero_chars_per_line(monkeypatch, tmp_path, gig_factory, capsys):
    monkeypatch.setattr(gig_source, "fetch_gigs", lambda *a, **k: st_kilda_gigs(gig_factory, 2))
    args = ["--date", "2025-01-31", "--output-dir", str(tmp_path), "--chars-per-line", "0"]
    assert main(args) == 1
    assert "chars_per_line must be a positive integer" in capsys.readouterr().out


def test_main_reports_malformed_venue_handles(monkeypatch, tmp_path, gig_factory, capsys):
    handles = tmp_path / "handles.json"
    handles.write_text("{not json", encoding="utf-8")
    monkeypatch.setattr(gig_source, "fetch_gigs", lambda *a, **k: st_kilda_gigs(gig_factory, 2))
    args = ["--date", "2025-01-31", "--output-dir", str(tmp_path), "--venue-handles", str(handles)]
    assert main(args) == 1
    assert "Failed to read venue handles" in capsys.readouterr().out
