from pathlib import Path

from main import _parse_args, main


def test_default_command_invokes_serve() -> None:
    args = _parse_args([])
    assert args.command == "serve"


def test_default_command_accepts_options_without_subcommand() -> None:
    args = _parse_args(["--host", "127.0.0.1", "--port", "8080"])
    assert args.command == "serve"
    assert args.host == "127.0.0.1"
    assert args.port == 8080


def test_config_option_precedes_implicit_serve() -> None:
    args = _parse_args(["--config", "settings.yaml", "--port", "9000"])
    assert args.command == "serve"
    assert args.config == Path("settings.yaml")
    assert args.port == 9000


def test_list_users_subcommand_available() -> None:
    args = _parse_args(["list-users"])
    assert args.command == "list-users"


def test_init_db_creates_database(tmp_path: Path, monkeypatch, capsys) -> None:
    db_path = tmp_path / "cli.sqlite3"
    monkeypatch.setenv("USERCACHE_DB_PATH", str(db_path))
    monkeypatch.delenv("USERCACHE_CONFIG", raising=False)

    assert main(["init-db"]) == 0
    assert db_path.exists()
    assert "Database initialisation complete." in capsys.readouterr().out


def test_list_users_prints_records(tmp_path: Path, monkeypatch, capsys) -> None:
    from usercache.database import Database
    from usercache.models import User

    db_path = tmp_path / "cli.sqlite3"
    database = Database(db_path)
    database.initialize()
    database.create_user(User(email="a@x.com", password="pw", name="Alice", age=20))
    monkeypatch.setenv("USERCACHE_DB_PATH", str(db_path))
    monkeypatch.delenv("USERCACHE_CONFIG", raising=False)

    assert main(["list-users"]) == 0
    output = capsys.readouterr().out
    assert "a@x.com" in output
    assert "Alice" in output


def test_invalid_settings_exit_with_error(monkeypatch, capsys) -> None:
    monkeypatch.setenv("USERCACHE_PORT", "not-a-port")
    monkeypatch.delenv("USERCACHE_CONFIG", raising=False)

    assert main(["init-db"]) == 2
    assert "Invalid port" in capsys.readouterr().err


def test_config_option_after_serve() -> None:
    args = _parse_args(["serve", "--config", "settings.yaml"])
    assert args.command == "serve"
    assert args.config == Path("settings.yaml")


def test_config_option_after_list_users() -> None:
    args = _parse_args(["list-users", "--config", "settings.yaml"])
    assert args.command == "list-users"
    assert args.config == Path("settings.yaml")


def test_config_option_before_explicit_command() -> None:
    args = _parse_args(["--config", "settings.yaml", "init-db"])
    assert args.command == "init-db"
    assert args.config == Path("settings.yaml")


def test_config_option_in_equals_form() -> None:
    args = _parse_args(["--config=settings.yaml"])
    assert args.command == "serve"
    assert args.config == Path("settings.yaml")


def test_config_option_after_serve_options() -> None:
    args = _parse_args(["--port", "9000", "--config", "settings.yaml"])
    assert args.command == "serve"
    assert args.port == 9000
    assert args.config == Path("settings.yaml")


def test_config_defaults_to_none() -> None:
    assert _parse_args(["list-users"]).config is None


def test_list_users_prints_count_header(tmp_path: Path, monkeypatch, capsys) -> None:
    from usercache.database import Database
    from usercache.models import User

    db_path = tmp_path / "cli.sqlite3"
    database = Database(db_path)
    database.initialize()
    database.create_user(User(email="a@x.com", password="pw", name="Alice", age=20))
    database.create_user(User(email="b@x.com", password="pw", name="Bob", age=30))
    monkeypatch.setenv("USERCACHE_DB_PATH", str(db_path))
    monkeypatch.delenv("USERCACHE_CONFIG", raising=False)

    assert main(["list-users"]) == 0
    assert "2 user(s) found:" in capsys.readouterr().out


def test_list_users_reads_config_given_after_command(tmp_path: Path, monkeypatch, capsys) -> None:
    config = tmp_path / "settings.yaml"
    config.write_text("database_path: nested/cli.sqlite3\n", encoding="utf-8")
    monkeypatch.delenv("USERCACHE_DB_PATH", raising=False)
    monkeypatch.delenv("USERCACHE_CONFIG", raising=False)

    assert main(["list-users", "--config", str(config)]) == 0
    assert (tmp_path / "nested" / "cli.sqlite3").exists()
    assert "No users found." in capsys.readouterr().out


def test_serve_reuses_initialised_database(tmp_path: Path, monkeypatch) -> None:
    import uvicorn

    import main as cli

    captured = {}
    initialised = []
    original_initialise = cli._initialise_database

    def tracking_initialise(settings):
        database = original_initialise(settings)
        initialised.append(database)
        return database

    def fake_run(app, **kwargs) -> None:
        captured["database"] = app.state.database
        captured["port"] = kwargs["port"]

    monkeypatch.setattr(cli, "_initialise_database", tracking_initialise)
    monkeypatch.setattr(uvicorn, "run", fake_run)
    monkeypatch.setenv("USERCACHE_DB_PATH", str(tmp_path / "serve.sqlite3"))
    monkeypatch.delenv("USERCACHE_CONFIG", raising=False)

    assert cli.main(["serve", "--port", "9123"]) == 0
    assert captured["port"] == 9123
    assert len(initialised) == 1
    assert captured["database"] is initialised[0]
