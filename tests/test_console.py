"""Tests for console.py module."""

from unittest.mock import patch

from elchi_installer import console


class TestConsoleOutput:
    """Tests for console output functions."""

    def test_info_message(self):
        """Test info message format."""
        with patch.object(console.console, "print") as mock_print:
            console.info("Test message")
            mock_print.assert_called_once()
            call_arg = mock_print.call_args[0][0]
            assert "ℹ" in call_arg
            assert "Test message" in call_arg

    def test_success_message(self):
        """Test success message format."""
        with patch.object(console.console, "print") as mock_print:
            console.success("Operation complete")
            call_arg = mock_print.call_args[0][0]
            assert "✓" in call_arg
            assert "Operation complete" in call_arg

    def test_warning_message(self):
        """Test warning message format."""
        with patch.object(console.console, "print") as mock_print:
            console.warning("Be careful")
            call_arg = mock_print.call_args[0][0]
            assert "⚠" in call_arg
            assert "Be careful" in call_arg

    def test_error_message_goes_to_stderr_console(self):
        """Test errors are printed on the stderr console only."""
        with (
            patch.object(console.err_console, "print") as mock_err,
            patch.object(console.console, "print") as mock_out,
        ):
            console.error("Something failed")
            mock_out.assert_not_called()
            call_arg = mock_err.call_args[0][0]
            assert "✗" in call_arg
            assert "Something failed" in call_arg

    def test_error_console_is_stderr(self):
        """Test the error console writes to stderr."""
        assert console.err_console.stderr is True

    def test_action_message(self):
        """Test action message format."""
        with patch.object(console.console, "print") as mock_print:
            console.action("Doing something")
            call_arg = mock_print.call_args[0][0]
            assert "→" in call_arg

    def test_highlight_returns_markup(self):
        """Test highlight returns Rich markup."""
        assert console.highlight("important") == "[highlight]important[/highlight]"

    def test_newline(self):
        """Test newline prints empty line."""
        with patch.object(console.console, "print") as mock_print:
            console.newline()
            mock_print.assert_called_once_with()


class TestConsoleStructure:
    """Tests for headers, lists and tables."""

    def test_step_header_numbering(self):
        """Test step headers carry the step counter."""
        with patch.object(console.console, "print") as mock_print:
            console.step_header(3, 14, "Installing Docker")
            rule = mock_print.call_args_list[-1][0][0]
            assert "[Step 3/14] Installing Docker" in str(rule.title)

    def test_bullet_list(self):
        """Test a bullet list prints the title and one line per entry."""
        with patch.object(console.console, "print") as mock_print:
            console.bullet_list("Removed:", ["kind", "helm"])
            assert mock_print.call_count == 3
            assert "kind" in mock_print.call_args_list[1][0][0]

    def test_bullet_list_without_title(self):
        """Test an empty title is not printed."""
        with patch.object(console.console, "print") as mock_print:
            console.bullet_list("", ["kind"])
            mock_print.assert_called_once()

    def test_resource_table(self):
        """Test resource tables render a row per resource."""
        with patch.object(console.console, "print") as mock_print:
            console.resource_table("Pods", ("NAME", "STATUS"), [("elchi-0", "Running"), ("mongo-0", "Pending")])
            table = mock_print.call_args[0][0]
            assert table.row_count == 2
            assert len(table.columns) == 2

    def test_summary_panel(self):
        """Test summary panel renders."""
        with patch.object(console.console, "print") as mock_print:
            console.summary_panel("Test Summary", {"Key1": "Value1", "Key2": "Value2"})
            mock_print.assert_called_once()

    def test_banner(self):
        """Test banner renders a single panel."""
        with patch.object(console.console, "print") as mock_print:
            console.banner("Elchi Stack Installation")
            mock_print.assert_called_once()


class TestConsoleProgress:
    """Tests for spinner and progress bar creation."""

    def test_spinner_context_manager(self):
        """Test spinner works as context manager."""
        with patch.object(console.console, "status") as mock_status:
            mock_status.return_value.__enter__ = lambda x: None
            mock_status.return_value.__exit__ = lambda x, *args: None
            with console.spinner("Loading..."):
                pass
            mock_status.assert_called_once()

    def test_create_download_progress(self):
        """Test download progress bar creation."""
        assert console.create_download_progress() is not None
