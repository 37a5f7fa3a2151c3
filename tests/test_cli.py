"""Tests for the command-line entry point."""

import json
from unittest.mock import patch

import pytest

from conftest import FakeBackend, encode_image
from receipt_sheets import cli
from receipt_sheets.errors import ConfigurationError
from receipt_sheets.models import ReceiptItem, ReceiptRecord


@pytest.fixture
def receipt_file(tmp_path):
    path = tmp_path / "receipt.jpg"
    path.write_bytes(encode_image(320, 240))
    return path


@pytest.fixture
def patched(fake_backend, appender):
    with patch.object(cli, "create_backend", return_value=fake_backend), \
            patch.object(cli.SheetAppender, "from_config", return_value=appender):
        yield appender


def _run(argv):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(argv)
    return exc_info.value.code


def test_format_receipt():
    record = ReceiptRecord(
        store_name="Cafe X",
        timestamp="2024-03-01",
        items=[ReceiptItem("Coffee", 3.5)],
        total=3.5,
    )
    text = cli.format_receipt(record)
    assert text.splitlines()[0] == "Cafe X  (2024-03-01)"
    assert "Other" in text
    assert "3.50" in text


def test_no_command_prints_help(capsys):
    assert _run([]) == 1
    assert "receipt-sheets" in capsys.readouterr().out


class TestScan:
    def test_scan_json_yes(self, receipt_file, patched, capsys):
        assert _run(["scan", "--image", str(receipt_file), "--json", "--yes"]) == 0

        out = capsys.readouterr().out
        start, end = out.index("{"), out.rindex("}") + 1
        assert json.loads(out[start:end])["storeName"] == "Cafe X"
        assert "1 row(s) added" in out
        patched._service.spreadsheets.assert_called()

    def test_scan_declined(self, receipt_file, patched, capsys):
        with patch("builtins.input", return_value="n"):
            assert _run(["scan", "--image", str(receipt_file)]) == 0
        assert "Discarded." in capsys.readouterr().out
        patched._service.spreadsheets.assert_not_called()

    def test_scan_no_stdin_discards(self, receipt_file, patched):
        with patch("builtins.input", side_effect=EOFError):
            assert _run(["scan", "--image", str(receipt_file)]) == 0
        patched._service.spreadsheets.assert_not_called()

    def test_scan_missing_file(self, tmp_path, patched, capsys):
        assert _run(["scan", "--image", str(tmp_path / "nope.jpg"), "--yes"]) == 1
        assert "Failed to load image" in capsys.readouterr().err

    def test_scan_extraction_failure(self, receipt_file, appender, capsys):
        backend = FakeBackend(completion="no receipt here")
        with patch.object(cli, "create_backend", return_value=backend), \
                patch.object(cli.SheetAppender, "from_config", return_value=appender):
            assert _run(["scan", "--image", str(receipt_file), "--yes"]) == 1
        assert "Error processing receipt" in capsys.readouterr().err

    def test_scan_bad_backend_config(self, receipt_file, capsys):
        with patch.object(cli, "create_backend", side_effect=ConfigurationError("Unknown vision backend: 'x'")):
            assert _run(["scan", "--image", str(receipt_file)]) == 2
        assert "Server configuration error" in capsys.readouterr().err
