import json

from worker.app.telemetry import Telemetry


def test_counters_and_unknown_names(tmp_path):
    t = Telemetry(log_dir=tmp_path)
    t.increment("submit_total")
    t.increment("images_uploaded_total", 3)
    t.increment("no_such_counter")
    stats = t.get_stats()
    assert stats["submit_total"] == 1
    assert stats["images_uploaded_total"] == 3
    assert "no_such_counter" not in stats


def test_log_json_appends_lines(tmp_path):
    t = Telemetry(log_dir=tmp_path)
    t.log_json("submit_success", article_id="abc", images_uploaded=2)
    t.log_json("submit_failure", level="error", error="Bad credentials")
    lines = (tmp_path / "worker.jsonl").read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    first = json.loads(lines[0])
    assert first["event"] == "submit_success"
    assert first["subsystem"] == "worker"
    assert json.loads(lines[1])["level"] == "error"


def test_set_error(tmp_path):
    t = Telemetry(log_dir=tmp_path)
    t.set_error("Bad credentials")
    assert t.get_stats()["last_error"] == "Bad credentials"
