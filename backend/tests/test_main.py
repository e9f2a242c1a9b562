import main


def test_run_serves_app_with_uvicorn(monkeypatch):
    calls = []
    monkeypatch.setattr(main.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.setenv("HOST", "127.0.0.1")
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    main.run()

    assert calls == [("main:app", {"host": "127.0.0.1", "port": 9000, "log_level": "info"})]


def test_run_defaults(monkeypatch):
    calls = []
    monkeypatch.setattr(main.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    for name in ("HOST", "PORT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    main.run()

    assert calls[0][1]["host"] == "0.0.0.0"
    assert calls[0][1]["port"] == 8000
