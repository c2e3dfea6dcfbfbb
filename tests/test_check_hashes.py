import pytest

import check_hashes
from pwned_errors import PartitionCorruptionError, TransportError

GOOD = "21BD1FAA3BB7F0FBDBBE55A0BF95261B"


class RecordingChecker:
    def __init__(self, outcome=True):
        self.outcome = outcome
        self.calls = []

    def check(self, query):
        self.calls.append(str(query))
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


@pytest.fixture
def recording(monkeypatch):
    holder = {}

    def install(outcome=True):
        checker = RecordingChecker(outcome)
        holder["config"] = None

        def factory(config):
            holder["config"] = config
            return checker

        monkeypatch.setattr(check_hashes, "BreachChecker", factory)
        return checker, holder

    return install


def test_single_hash(recording, capsys, tmp_path):
    checker, holder = recording(True)

    assert check_hashes.main(["--hash", GOOD.lower(), "--cache-dir", str(tmp_path)]) == 0

    assert checker.calls == [GOOD]
    assert f"{GOOD} found=True" in capsys.readouterr().out
    assert holder["config"].cache_dir == str(tmp_path)


def test_default_hash(recording):
    checker, _ = recording(False)

    assert check_hashes.main([]) == 0
    assert checker.calls == [check_hashes.DEFAULT_HASH]


def test_single_invalid_hash(recording):
    checker, _ = recording()

    assert check_hashes.main(["--hash", "abc"]) == 2
    assert checker.calls == []


def test_single_transport_failure_is_fatal(recording):
    recording(TransportError("no route"))

    assert check_hashes.main(["--hash", GOOD]) == 1


def test_single_corruption(recording):
    recording(PartitionCorruptionError("short line"))

    assert check_hashes.main(["--hash", GOOD]) == 3


def test_file_mode(recording, capsys, tmp_path):
    checker, holder = recording(False)
    hashes = [f"{i:032X}" for i in range(5)]
    path = tmp_path / "hashes.txt"
    path.write_text("\n".join(hashes) + "\n")

    assert check_hashes.main(["--file", str(path), "--workers", "3"]) == 0

    assert sorted(checker.calls) == hashes
    out = capsys.readouterr().out
    assert all(f"{h} found=False" in out for h in hashes)
    assert holder["config"].max_in_flight == 3


def test_file_with_bad_line_checks_nothing(recording, tmp_path):
    checker, _ = recording()
    lines = [f"{i:032X}" for i in range(15)]
    lines[7] = "TOO-SHORT"
    path = tmp_path / "hashes.txt"
    path.write_text("\n".join(lines))

    assert check_hashes.main(["--file", str(path)]) == 2
    assert checker.calls == []


def test_missing_file(recording, tmp_path):
    recording()

    assert check_hashes.main(["--file", str(tmp_path / "nope.txt")]) == 2


def test_invalid_worker_count(recording):
    recording()

    assert check_hashes.main(["--workers", "0"]) == 2


def test_file_with_blank_line_checks_nothing(recording, tmp_path):
    checker, _ = recording()
    path = tmp_path / "hashes.txt"
    path.write_text(f"{GOOD}\n\n{GOOD}\n")

    assert check_hashes.main(["--file", str(path)]) == 2
    assert checker.calls == []


def test_file_not_utf8(recording, tmp_path):
    checker, _ = recording()
    path = tmp_path / "hashes.bin"
    path.write_bytes(b"\xff\xfe\x00\x81" * 8 + b"\n")

    assert check_hashes.main(["--file", str(path)]) == 2
    assert checker.calls == []
