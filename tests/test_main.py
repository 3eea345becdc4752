import json

import pytest

import main


@pytest.fixture(autouse=True)
def quiet_settings(monkeypatch):
    monkeypatch.setenv("LOG_PATH", "")
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    monkeypatch.delenv("DRAW_MAX_STEPS", raising=False)
    monkeypatch.delenv("DRAW_SEED", raising=False)


def write_input(tmp_path, participants, exclusions=()):
    path = tmp_path / "draw.json"
    path.write_text(json.dumps({"participants": participants, "exclusions": list(exclusions)}))
    return str(path)


def test_main_prints_assignments(tmp_path, capsys):
    path = write_input(
        tmp_path,
        [
            {"id": "a", "name": "Alice", "notes": "books"},
            {"id": "b", "name": "Bob"},
            {"id": "c", "name": "Carol"},
            {"id": "d", "name": "Dave"},
            {"id": "x", "name": "Admin", "is_admin": True},
        ],
        [["a", "b"]],
    )

    assert main.main([path, "--seed", "11"]) == 0

    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 5
    givers = [line.split(" -> ")[0] for line in lines[:4]]
    receivers = [line.split(" -> ")[1] for line in lines[:4]]
    assert givers == ["Alice", "Bob", "Carol", "Dave"]
    assert sorted(receivers) == ["Alice", "Bob", "Carol", "Dave"]
    assert "Alice -> Bob" not in lines
    assert "Bob -> Alice" not in lines
    assert lines[4] == "seed: 11"


def test_main_seed_from_settings(tmp_path, capsys, monkeypatch):
    monkeypatch.setenv("DRAW_SEED", "99")
    path = write_input(tmp_path, [{"id": 1, "name": "One"}, {"id": 2, "name": "Two"}])

    assert main.main([path]) == 0
    assert capsys.readouterr().out.splitlines()[-1] == "seed: 99"


def test_main_reports_infeasible_draw(tmp_path, capsys):
    path = write_input(tmp_path, [{"id": "a", "name": "Alice"}, {"id": "b", "name": "Bob"}], [["b", "a"]])

    assert main.main([path]) == 1
    assert "Unable to find a valid draw" in capsys.readouterr().err


def test_main_rejects_unreadable_input(tmp_path, capsys):
    missing = tmp_path / "missing.json"
    assert main.main([str(missing)]) == 2

    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    assert main.main([str(broken)]) == 2
    assert "Cannot read" in capsys.readouterr().err


def test_load_draw_input_defaults(tmp_path):
    path = write_input(tmp_path, [{"id": 7}])
    participants, exclusions = main.load_draw_input(path)
    assert participants[0].name == "7"
    assert participants[0].notes == ""
    assert not participants[0].is_admin
    assert exclusions == []


@pytest.mark.parametrize(
    "participants, exclusions",
    [
        ([{"id": ["a"]}, {"id": "b"}], []),
        ([{"id": {"a": 1}}, {"id": "b"}], []),
        ([{"id": "a"}, {"id": "b"}], [[["a"], "b"]]),
        ([{"id": "a"}, {"id": "b"}], [5]),
    ],
)
def test_main_rejects_malformed_ids(tmp_path, capsys, participants, exclusions):
    path = write_input(tmp_path, participants, exclusions)
    assert main.main([path]) == 2
    assert "Cannot read" in capsys.readouterr().err


def test_load_draw_input_rejects_non_scalar_id(tmp_path):
    path = write_input(tmp_path, [{"id": ["a"]}])
    with pytest.raises(ValueError, match="participant id"):
        main.load_draw_input(path)
