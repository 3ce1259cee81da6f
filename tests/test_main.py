from __future__ import annotations

from pathlib import Path

from visual_search_circle.__main__ import main


def test_invalid_config_exits_with_error_code(tmp_path: Path) -> None:
    path = tmp_path / "trial.json"
    path.write_text('{"target": "t.png", "set_size": 3}', encoding="utf-8")
    assert main(["--config", str(path)]) == 2


def test_missing_config_file_exits_with_error_code(tmp_path: Path) -> None:
    assert main(["--config", str(tmp_path / "nope.json")]) == 2


def test_wrongly_typed_config_value_exits_with_error_code(tmp_path: Path) -> None:
    path = tmp_path / "trial.json"
    path.write_text(
        '{"target": "t.png", "foil": "f.png", "fixation_image": "x.png",'
        ' "flanker_image": "y.png", "set_size": 4, "target_size": 50}',
        encoding="utf-8",
    )
    assert main(["--config", str(path)]) == 2
