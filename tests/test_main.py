import json
import sys

import pytest

import main
from system_info import SystemInfo

INFO = SystemInfo("20.3", "AMD Ryzen 7 x 2", 2097152, 64, 500)


def _run(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["dde-session-helpers", *argv])
    with pytest.raises(SystemExit) as excinfo:
        main.main()
    return excinfo.value.code


def test_facts_json(monkeypatch, capsys):
    monkeypatch.setattr(main, "new_system_info", lambda: INFO)

    assert _run(monkeypatch, "facts", "--json") == 0
    assert json.loads(capsys.readouterr().out)["Processor"] == "AMD Ryzen 7 x 2"


def test_facts_failure_exits_non_zero(monkeypatch):
    monkeypatch.setattr(main, "new_system_info", lambda: None)
    assert _run(monkeypatch, "facts") == 1


@pytest.mark.parametrize("arg, expected", [
    ("1001", ("uid", 1001)),
    ("/com/deepin/daemon/Accounts/User1001", ("path", "/com/deepin/daemon/Accounts/User1001")),
])
def test_provision_dispatch(monkeypatch, arg, expected):
    seen = []
    monkeypatch.setattr(main.user_data, "provision", lambda uid: seen.append(("uid", uid)))
    monkeypatch.setattr(main.user_data, "provision_user_path", lambda p: seen.append(("path", p)))

    assert _run(monkeypatch, "provision", arg) == 0
    assert seen == [expected]


def test_format_helpers():
    assert main._format_bytes(1024 ** 3) == "1.0 GiB (1073741824 B)"
    assert main._format_system_type(32) == "32-bit"
    assert main._format_system_type(0) == "unknown"
