from pathlib import Path

import pytest

from onsite_finsight.config import default_app_config, load_app_config, resolve_data_paths


def _write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "onsite_finsight_config.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_full_config(tmp_path) -> None:
    cfg_file = _write_config(
        tmp_path,
        """
[report]
timeframe = "quarterly"
currency = "EUR"

[data]
dir = "records"
invoices = "billing/invoices.csv"
projects = ""

[display]
mode = "json"
decimals = 0

[logging]
level = "debug"
json = true
""",
    )

    cfg = load_app_config(str(cfg_file))

    base = tmp_path.resolve()
    assert cfg.timeframe == "quarterly"
    assert cfg.currency == "EUR"
    assert cfg.display_mode == "json"
    assert cfg.decimals == 0
    assert cfg.logging.level == "DEBUG"
    assert cfg.logging.json is True
    assert cfg.data.paths["expenses"] == base / "records" / "expenses.csv"
    assert cfg.data.paths["invoices"] == base / "records" / "billing" / "invoices.csv"
    assert cfg.data.paths["projects"] is None


def test_empty_config_uses_defaults(tmp_path) -> None:
    cfg = load_app_config(str(_write_config(tmp_path, "")))

    assert cfg.timeframe == "6months"
    assert cfg.currency == "USD"
    assert cfg.display_mode == "table"
    assert cfg.decimals == 2
    assert cfg.logging.level == "INFO"
    assert cfg.data.paths["payments"] == tmp_path.resolve() / "data" / "payments.csv"


def test_load_config_from_current_directory(tmp_path, monkeypatch) -> None:
    _write_config(tmp_path, '[report]\ntimeframe = "year"\n')
    monkeypatch.chdir(tmp_path)

    assert load_app_config().timeframe == "year"


@pytest.mark.parametrize(
    "text, match",
    [
        ('[report]\ntimeframe = "decade"\n', "report.timeframe"),
        ('[display]\nmode = "html"\n', "display.mode"),
        ('[display]\ndecimals = "two"\n', "display.decimals"),
        ('[logging]\nlevel = "verbose"\n', "logging.level"),
        ('[logging]\njson = "false"\n', "logging.json"),
        ("[logging]\njson = 1\n", "logging.json"),
        ('[data]\nreceipts = "receipts.csv"\n', "Unknown key"),
        ("report = 3\n", "must be a table"),
        ("[report\n", "Failed to parse"),
    ],
)
def test_invalid_config_values(tmp_path, text, match) -> None:
    cfg_file = _write_config(tmp_path, text)

    with pytest.raises(ValueError, match=match):
        load_app_config(str(cfg_file))


def test_missing_config_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_app_config(str(tmp_path / "missing.toml"))


def test_default_config_and_existing_files(tmp_path) -> None:
    cfg = default_app_config(tmp_path)
    assert cfg.data.existing() == {}

    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "expenses.csv").write_text("id,amount,date\n", encoding="utf-8")

    existing = cfg.data.existing()
    assert list(existing) == ["expenses"]


def test_resolve_data_paths_with_absolute_dir(tmp_path) -> None:
    data = resolve_data_paths({"dir": str(tmp_path)}, Path("/somewhere/else"))

    assert data.paths["projects"] == tmp_path.resolve() / "projects.csv"


def test_with_dir_keeps_per_collection_file_names(tmp_path) -> None:
    cfg_file = _write_config(
        tmp_path,
        '[data]\ndir = "records"\nexpenses = "my_expenses.csv"\nprojects = ""\n',
    )
    cfg = load_app_config(str(cfg_file))
    other = tmp_path / "elsewhere"

    data = cfg.data.with_dir(other)

    assert data.paths["expenses"] == other.resolve() / "my_expenses.csv"
    assert data.paths["payments"] == other.resolve() / "payments.csv"
    assert data.paths["projects"] is None
