"""Tests for main.py CLI functionality."""

from unittest.mock import patch

import pytest

from printable_maps.main import main
from printable_maps.testing.fakes import create_test_image, create_truncated_image


@pytest.fixture
def map_file(tmp_path):
    path = tmp_path / "dungeon.png"
    path.write_bytes(create_test_image(1600, 1200))
    return path


class TestMainCLI:
    """Tests for the main CLI functionality."""

    def test_main_with_no_args_shows_help(self):
        """Test that running main without arguments shows help."""
        with patch("sys.argv", ["printable-maps"]):
            with patch("argparse.ArgumentParser.print_help") as mock_help:
                with patch("sys.exit") as mock_exit:
                    main()
                    mock_help.assert_called_once()
                    mock_exit.assert_called_once_with(1)

    def test_main_version_command(self):
        """Test version command output."""
        with patch("sys.argv", ["printable-maps", "version"]):
            with patch("builtins.print") as mock_print:
                with patch("sys.exit") as mock_exit:
                    main()
                    mock_print.assert_any_call("Printable Maps CLI")
                    mock_print.assert_any_call("Version 0.1.0")
                    mock_exit.assert_called_once_with(0)

    def test_plan_command(self, map_file, capsys):
        main(["plan", str(map_file)])

        out = capsys.readouterr().out
        assert "Image: " in out and "(1600x1200 px)" in out
        assert "Grid: 3 x 2 = 6 map pages" in out
        assert "Document pages: 12" in out

    def test_plan_command_without_backside_numbers(self, map_file, capsys):
        main(["plan", str(map_file), "--scale", "0.5", "--no-backside-numbers"])

        out = capsys.readouterr().out
        assert "Grid: 2 x 1 = 2 map pages" in out
        assert "Document pages: 3" in out

    def test_plan_command_rejects_invalid_scale(self, map_file):
        with pytest.raises(SystemExit) as exc_info:
            main(["plan", str(map_file), "--scale", "0"])
        assert exc_info.value.code == 1

    def test_plan_command_missing_file(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            main(["plan", str(tmp_path / "missing.png")])
        assert exc_info.value.code == 1

    def test_generate_command_writes_document(self, map_file, tmp_path, capsys):
        output_dir = tmp_path / "out"

        main(
            [
                "generate",
                str(map_file),
                "--scale",
                "0.5",
                "--outline-style",
                "solid",
                "--output-dir",
                str(output_dir),
            ]
        )

        documents = list(output_dir.glob("*.pdf"))
        assert len(documents) == 1
        assert documents[0].read_bytes().startswith(b"%PDF")
        assert "dungeon.png: " in capsys.readouterr().out

    def test_generate_command_s3_backend_requires_bucket(self, map_file):
        with pytest.raises(SystemExit) as exc_info:
            main(["generate", str(map_file), "--backend", "s3"])
        assert exc_info.value.code == 1

    def test_generate_rejects_unknown_paper_size(self, map_file):
        with pytest.raises(SystemExit) as exc_info:
            main(["generate", str(map_file), "--paper-size", "b5"])
        assert exc_info.value.code == 2

    def test_batch_command_completes(self, tmp_path, capsys):
        first = tmp_path / "level1.png"
        second = tmp_path / "level2.png"
        first.write_bytes(create_test_image(300, 200))
        second.write_bytes(create_test_image(900, 400))

        main(
            [
                "batch",
                str(first),
                str(second),
                "--name",
                "Campaign",
                "--output-dir",
                str(tmp_path / "out"),
            ]
        )

        out = capsys.readouterr().out
        assert "Batch job: Campaign" in out
        assert "Status: completed" in out
        assert "Processed: 2/2, failed: 0" in out
        assert len(list((tmp_path / "out").glob("*.pdf"))) == 2

    def test_batch_command_fails_when_every_map_fails(self, tmp_path, capsys):
        broken = tmp_path / "broken.png"
        broken.write_bytes(create_truncated_image())

        with pytest.raises(SystemExit) as exc_info:
            main(["batch", str(broken), "--output-dir", str(tmp_path / "out")])

        assert exc_info.value.code == 1
        out = capsys.readouterr().out
        assert "Status: failed" in out
        assert "Error: All files failed to process" in out

    def test_batch_command_without_usable_images(self, tmp_path):
        text_file = tmp_path / "notes.png"
        text_file.write_bytes(b"not an image")

        with pytest.raises(SystemExit) as exc_info:
            main(["batch", str(text_file), "--output-dir", str(tmp_path / "out")])
        assert exc_info.value.code == 1
