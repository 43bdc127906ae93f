"""
Script builder: quoting and statement structure.
"""
import pytest

from cpi_hyperv.actions.script import Assign, Command, NonFatal, Pipeline, Raw, Script, literal, megabytes, quote
from cpi_hyperv.actions.workers import CreateWorker, DeleteWorker


def top_level_statements(script: str) -> int:
    """Count `;` separators outside single-quoted literals ('' is an escaped quote)."""
    count, in_quote, i = 1, False, 0
    while i < len(script):
        ch = script[i]
        if ch == "'":
            if in_quote and script[i + 1:i + 2] == "'":
                i += 2
                continue
            in_quote = not in_quote
        elif ch == ";" and not in_quote:
            count += 1
        i += 1
    assert not in_quote, "unterminated literal"
    return count


class TestQuote:
    def test_plain(self):
        assert quote("vm1") == "'vm1'"

    def test_single_quote_doubled(self):
        assert quote("it's") == "'it''s'"

    def test_typographic_quotes_doubled(self):
        assert quote("a’b") == "'a’’b'"
        assert quote("‘x‛") == "'‘‘x‛‛'"

    def test_dollar_and_backtick_left_alone(self):
        assert quote("$env:PATH `n") == "'$env:PATH `n'"

    def test_rejects_non_string(self):
        with pytest.raises(TypeError):
            quote(5)


class TestLiterals:
    def test_literal_kinds(self):
        assert literal("x") == "'x'"
        assert literal(3) == "3"
        assert literal(True) == "$true"
        assert literal(False) == "$false"
        assert literal(Raw("SilentlyContinue")) == "SilentlyContinue"

    def test_literal_rejects_other_types(self):
        with pytest.raises(TypeError):
            literal(1.5)

    def test_megabytes(self):
        assert megabytes(2048).render() == "2048MB"
        with pytest.raises(TypeError):
            megabytes(True)
        with pytest.raises(TypeError):
            megabytes("2048")


class TestStatements:
    def test_command_params_then_switches(self):
        cmd = Command("Stop-VM", "TurnOff", "Force", Name="vm1")
        assert cmd.render() == "Stop-VM -Name 'vm1' -TurnOff -Force"

    def test_command_skips_none(self):
        assert Command("Get-VM", Name=None).render() == "Get-VM"

    def test_pipeline_and_script(self):
        script = Script(
            Pipeline(Command("Get-VM", Name="a"), Raw("Measure-Object")),
            Command("Start-VM", Name="a"),
        )
        assert script.render() == "Get-VM -Name 'a' | Measure-Object; Start-VM -Name 'a'"

    def test_non_fatal_wraps_in_try(self):
        assert NonFatal(Raw("Stop-VM")).render() == "try { Stop-VM } catch { }"

    def test_assign(self):
        assert Assign("$vm", Command("Get-VM", Name="a")).render() == "$vm = Get-VM -Name 'a'"
        with pytest.raises(ValueError):
            Assign("vm; Remove-Item", Raw("x"))


class TestInjection:
    def test_quote_in_name_does_not_change_structure(self, settings):
        action = CreateWorker(settings)
        base = {"memory_mb": 2048, "cpu_count": 2, "generation": 2, "switch_name": "Default Switch"}
        benign = action.render({**base, "worker_name": "vm1"})
        hostile = action.render({**base, "worker_name": "x'; Remove-VM -Name 'prod' -Force; '"})
        assert top_level_statements(hostile) == top_level_statements(benign)
        assert "'x''; Remove-VM -Name ''prod'' -Force; '''" in hostile

    def test_delete_runs_cleanup_as_non_fatal_then_removes(self):
        script = DeleteWorker().render({"worker_name": "vm1"})
        assert script == "try { Stop-VM -Name 'vm1' -TurnOff -Force } catch { }; Remove-VM -Name 'vm1' -Force"
