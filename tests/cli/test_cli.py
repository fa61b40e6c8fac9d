"""Tests for the command line interface."""
import json

import pytest

from facerecall.cli import main as cli_main
from facerecall.cli.main import build_parser, main
from facerecall.core.container import ServiceContainer
from tests.fakes import ALICE, FakeCamera, FakeExtractor, RecordingAnnouncer


@pytest.fixture(autouse=True)
def fake_container(monkeypatch):
    """Build containers around the fakes instead of the real model and devices."""
    def factory(database_url=None, camera=None):
        return ServiceContainer(
            database_url=database_url,
            extractor=FakeExtractor(),
            camera=camera or FakeCamera(),
            announcer=RecordingAnnouncer(),
        )

    monkeypatch.setattr(cli_main, "ServiceContainer", factory)
    # Keep the root handler pointed at the real stderr rather than the capture buffer
    monkeypatch.setattr(cli_main, "setup_logging", lambda level=None: None)


def run(*argv) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(list(argv))
    return exc_info.value.code


def test_parser_marks_commands_needing_models():
    parser = build_parser()
    assert parser.parse_args(["add", "Alice", "a.jpg"]).needs_models
    assert parser.parse_args(["recognize"]).needs_models
    assert not parser.parse_args(["list"]).needs_models


def test_threshold_help_mentions_typical_distances(capsys):
    assert run("recognize", "--help") == 0
    help_text = " ".join(capsys.readouterr().out.split())
    assert "Same-person distances are usually 0.8-1.1" in help_text


def test_add_list_and_recognize(database_url, write_photo, capsys):
    photo = write_photo("alice.jpg", b"alice-1")
    probe = write_photo("probe.jpg", b"alice-probe")

    assert run("--database", database_url, "add", "Alice", photo, "-r", "neighbour") == 0
    assert "Alice has been added successfully!" in capsys.readouterr().out

    assert run("--database", database_url, "list") == 0
    assert "Alice (neighbour)" in capsys.readouterr().out

    assert run("--database", database_url, "recognize", "--image", probe, "--announce", "none") == 0
    assert "Recognized: Alice" in capsys.readouterr().out


def test_add_without_face_fails(database_url, write_photo, capsys):
    photo = write_photo("empty.jpg", b"empty")

    assert run("--database", database_url, "add", "Alice", photo) == 1
    captured = capsys.readouterr()
    assert "No face detected in image" in captured.out
    assert "Please select at least one photo" in captured.err


def test_empty_list(database_url, capsys):
    assert run("--database", database_url, "list") == 0
    assert "No people saved yet." in capsys.readouterr().out


def test_show_unknown_person(database_url, capsys):
    assert run("--database", database_url, "show", "missing") == 1
    assert "Person not found" in capsys.readouterr().err


def test_export_import_and_clear(database_url, tmp_path, capsys):
    backup = tmp_path / "backup.json"
    backup.write_text(json.dumps([{"name": "Alice", "reference_embedding": ALICE}]))

    assert run("--database", database_url, "import", str(backup), "--yes") == 0
    assert "Imported 1 people." in capsys.readouterr().out

    exported = tmp_path / "exported.json"
    assert run("--database", database_url, "export", str(exported)) == 0
    assert json.loads(exported.read_text())[0]["name"] == "Alice"

    assert run("--database", database_url, "clear", "--yes") == 0
    assert "All data has been cleared (1 people)." in capsys.readouterr().out


def test_delete_can_be_cancelled(database_url, tmp_path, monkeypatch, capsys):
    backup = tmp_path / "backup.json"
    backup.write_text(json.dumps([{"name": "Alice", "reference_embedding": ALICE}]))
    run("--database", database_url, "import", str(backup), "--append")
    exported = tmp_path / "exported.json"
    run("--database", database_url, "export", str(exported))
    person_id = json.loads(exported.read_text())[0]["id"]
    capsys.readouterr()

    monkeypatch.setattr("builtins.input", lambda prompt: "n")
    assert run("--database", database_url, "delete", person_id) == 1
    assert "Cancelled." in capsys.readouterr().out

    assert run("--database", database_url, "delete", person_id, "--yes") == 0
    assert "Alice has been deleted." in capsys.readouterr().out


def test_recognize_from_static_camera_image(database_url, write_photo, capsys):
    run("--database", database_url, "add", "Alice", write_photo("alice.jpg", b"alice-1"))
    frame = write_photo("frame.jpg", b"stranger")
    capsys.readouterr()

    assert run("--database", database_url, "recognize", "--camera-image", frame) == 1
    assert "Not recognized: Face not recognized." in capsys.readouterr().out
