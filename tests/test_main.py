"""Integration tests for the stdin entry point."""

import io
import json
import os

import main


def _stdin(monkeypatch, lines):
    monkeypatch.setattr("sys.stdin", io.StringIO("".join(line + "\n" for line in lines)))


class TestMain:
    def test_writes_records_from_stdin(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_DIR", str(tmp_path))
        monkeypatch.delenv("CHECK_LOG_FILE", raising=False)
        _stdin(monkeypatch, [
            json.dumps({"container": "/a", "time": "2023-01-01T00:00:00Z", "data": "one"}),
            "not json",
            "",
            json.dumps({"container": "/a", "time": "2023-01-01T00:00:01Z", "data": "two"}),
        ])

        assert main.main(["--address", "in.log"]) == 0

        lines = (tmp_path / "in.log").read_text().splitlines()
        assert [json.loads(line)["line"] for line in lines] == ["one", "two"]
        assert json.loads(lines[0])["timestamp"] == "2023-01-01T00:00:00Z"

    def test_options_rotate(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_DIR", str(tmp_path))
        _stdin(monkeypatch, [
            json.dumps({"container": "/a", "data": f"record {i}"}) for i in range(5)
        ])

        assert main.main(["--address", "r.log", "--option", "maxfilesize=10",
                          "--option", "maxfilecount=2"]) == 0

        names = os.listdir(tmp_path)
        assert "r.log" in names
        assert len(names) <= 2

    def test_routes_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_DIR", str(tmp_path))
        config = tmp_path / "routes.yml"
        config.write_text(
            "routes:\n"
            "  - address: x.log\n"
            "  - address: y.log\n"
            "    options:\n"
            "      structured_data: true\n"
        )
        _stdin(monkeypatch, [json.dumps({"container": "/a", "data": '{"k": 1}'})])

        assert main.main(["--config", str(config)]) == 0

        x = json.loads((tmp_path / "x.log").read_text())
        y = json.loads((tmp_path / "y.log").read_text())
        assert x["line"] == '{"k": 1}'
        assert y["line"] == {"k": 1}

    def test_bad_option_fails(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_DIR", str(tmp_path))
        _stdin(monkeypatch, [])
        assert main.main(["--option", "novalue"]) == 1

    def test_startup_failure(self, tmp_path, monkeypatch):
        blocker = tmp_path / "file"
        blocker.write_text("")
        monkeypatch.setenv("LOG_DIR", str(blocker / "sub"))
        _stdin(monkeypatch, [])
        assert main.main([]) == 1

    def test_partial_startup_failure_closes_started_sinks(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_DIR", str(tmp_path))
        (tmp_path / "sub").write_text("")
        config = tmp_path / "routes.yml"
        config.write_text(
            "routes:\n"
            "  - address: x.log\n"
            "  - address: sub/y.log\n"
        )
        built = []
        real_adapter = main.new_file_adapter

        def tracking_adapter(route):
            sink = real_adapter(route)
            built.append(sink)
            return sink

        monkeypatch.setattr(main, "new_file_adapter", tracking_adapter)
        _stdin(monkeypatch, [])

        assert main.main(["--config", str(config)]) == 1
        assert len(built) == 1
        assert not built[0].files.is_open
