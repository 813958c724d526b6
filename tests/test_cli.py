import pytest
import yaml

from phase_timeline.__main__ import main
from phase_timeline.config import DevelopmentConfig, ProductionConfig, get_config
from phase_timeline.layout import PHASE_PALETTE


@pytest.fixture
def data_file(tmp_path):
    path = tmp_path / "phases.yaml"
    document = {
        "projects": {
            "web": {
                "name": "Website",
                "phases": [
                    {"name": "Planning", "start_date": "2024-01-01", "end_date": "2024-01-14", "duration": "1 week 6 days"},
                    {"name": "Build", "start_date": "2024-02-01", "end_date": "2024-02-10", "duration": "1 week 2 days"},
                    {"name": "Broken", "start_date": "someday"},
                ],
            }
        }
    }
    path.write_text(yaml.safe_dump(document), encoding="utf-8")
    return path


def test_duration_command(capsys):
    assert main(["duration", "2024-01-01", "2024-01-10"]) == 0
    assert capsys.readouterr().out.strip() == "1 week 2 days"


def test_duration_command_rejects_bad_date(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["duration", "2024-01-01", "tomorrow"])
    assert exc.value.code == 2


def test_layout_command_prints_bars_and_reports_malformed(data_file, capsys):
    assert main(["layout", str(data_file), "--project", "web"]) == 0

    captured = capsys.readouterr()
    assert "Axis: Jan 01, 2024 - Feb 10, 2024 (41 days)" in captured.out
    assert "Planning: start 0.00%" in captured.out
    assert "Jan 2024" in captured.out
    assert "Total phases: 2" in captured.out
    assert "Warning: skipped" in captured.err


def test_render_command_writes_svg(data_file, tmp_path):
    out_file = tmp_path / "out" / "chart.svg"

    assert main(["render", str(data_file), "--project", "web", "--out", str(out_file), "--no-view"]) == 0
    assert out_file.exists()


def test_unknown_project_is_a_validation_error(data_file, capsys):
    assert main(["layout", str(data_file), "--project", "nope"]) == 2
    assert "Error:" in capsys.readouterr().err


def test_missing_data_file(tmp_path, capsys):
    assert main(["layout", str(tmp_path / "missing.yaml"), "--project", "web"]) == 1
    assert "not found" in capsys.readouterr().err


def test_init_creates_project(tmp_path, capsys):
    path = tmp_path / "phases.yaml"

    assert main(["init", str(path), "Mobile App"]) == 0
    assert capsys.readouterr().out.strip() == "mobile-app"
    assert main(["layout", str(path), "--project", "mobile-app"]) == 0
    assert "No phases with start and end dates." in capsys.readouterr().out

    assert main(["init", str(path), "Mobile App"]) == 2


def test_config_follows_environment(monkeypatch):
    monkeypatch.setenv("PHASE_TIMELINE_ENV", "development")
    monkeypatch.setenv("PHASE_TIMELINE_MIN_BAR_WIDTH", "2.5")
    monkeypatch.setenv("PHASE_TIMELINE_PALETTE", "#000000, #ffffff")
    monkeypatch.delenv("PHASE_TIMELINE_LOG_LEVEL", raising=False)

    config = get_config()

    assert isinstance(config, DevelopmentConfig)
    assert config.MIN_BAR_WIDTH_PERCENT == 2.5
    assert config.PALETTE == ("#000000", "#ffffff")
    assert config.LOG_LEVEL == "DEBUG"

    monkeypatch.setenv("PHASE_TIMELINE_ENV", "unknown")
    assert isinstance(get_config(), ProductionConfig)


def test_layout_command_lists_attachments(tmp_path, capsys):
    path = tmp_path / "phases.yaml"
    document = {
        "projects": {
            "web": {
                "name": "Website",
                "phases": [
                    {
                        "name": "Design",
                        "start_date": "2024-01-01",
                        "end_date": "2024-01-05",
                        "attachments": [{"name": "brief.pdf", "size": 2048}],
                    }
                ],
            }
        }
    }
    path.write_text(yaml.safe_dump(document), encoding="utf-8")

    assert main(["layout", str(path), "--project", "web"]) == 0
    assert "    Attachment: brief.pdf (2 KB)" in capsys.readouterr().out


def test_blank_palette_falls_back_to_default(monkeypatch, data_file, capsys):
    monkeypatch.setenv("PHASE_TIMELINE_PALETTE", " , ")

    assert get_config().PALETTE == PHASE_PALETTE
    assert main(["layout", str(data_file), "--project", "web"]) == 0
    assert PHASE_PALETTE[0] in capsys.readouterr().out
