from typer.testing import CliRunner

from schemagen.cli import app, parse_properties

runner = CliRunner()


def test_generate_writes_both_scripts(orders_root, tmp_path):
    out = tmp_path / "out"
    result = runner.invoke(app, [
        "generate",
        "--unit", "orders-pu",
        "--input-dir", str(orders_root),
        "--output-dir", str(out),
        "--create-filename", "create.sql",
        "--drop-filename", "drop.sql",
        "-D", "eclipselink.target-database=PostgreSQL",
    ])
    assert result.exit_code == 0, result.output
    assert (out / "create.sql").read_text().startswith("CREATE TABLE orders")
    assert (out / "drop.sql").exists()


def test_generation_failure_exits_non_zero(tmp_path):
    (tmp_path / "empty").mkdir()
    result = runner.invoke(app, [
        "generate", "--unit", "orders-pu",
        "--input-dir", str(tmp_path / "empty"),
        "--output-dir", str(tmp_path / "out"),
    ])
    assert result.exit_code == 1
    assert "GenerationFailure" in result.output


def test_configuration_error_exits_non_zero(orders_root, tmp_path):
    taken = tmp_path / "taken"
    taken.write_text("file")
    result = runner.invoke(app, [
        "generate", "--unit", "orders-pu",
        "--input-dir", str(orders_root),
        "--output-dir", str(taken),
    ])
    assert result.exit_code == 1
    assert "ConfigurationError" in result.output


def test_bad_define_is_a_usage_error(orders_root, tmp_path):
    result = runner.invoke(app, [
        "generate", "--unit", "orders-pu",
        "--input-dir", str(orders_root),
        "--output-dir", str(tmp_path),
        "-D", "novalue",
    ])
    assert result.exit_code == 2


def test_parse_properties():
    assert parse_properties(["a=1", "b=x=y", "c="]) == {"a": "1", "b": "x=y", "c": ""}
    assert parse_properties(None) == {}
