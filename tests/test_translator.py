"""
Tests for the Translation Driver
================================

These tests verify input discovery, output naming, the two-pass
protocol, driver-level diagnostics and environment configuration.
"""

import pytest

from hackvm.errors import (
    DuplicateFunctionError,
    EmptyInputError,
    IndexRangeError,
    InputReadError,
    SegmentError,
    TranslationError,
    UndefinedFunctionError,
    VMSyntaxError,
)
from hackvm.vm.translator import (
    SourceUnit,
    TranslatorOptions,
    VMTranslator,
    find_vm_files,
    load_units,
    resolve_output_path,
    translate_commands,
    translate_vm,
)
from hackvm.vm.commands import arithmetic, push


SYS = "function Sys.init 0\ncall Main.main 0\npop temp 0\nlabel HALT\ngoto HALT\n"
MAIN = "function Main.main 0\npush constant 1\nreturn\n"


# =============================================================================
# Input Discovery and Output Naming
# =============================================================================

class TestInputDiscovery:

    def test_find_vm_files_sorted(self, vm_dir):
        directory = vm_dir("Prog", Sys=SYS, Main=MAIN, Alpha="")
        (directory / "notes.txt").write_text("ignore me")
        names = [p.name for p in find_vm_files(directory)]
        assert names == ["Alpha.vm", "Main.vm", "Sys.vm"]

    def test_empty_directory(self, tmp_path):
        (tmp_path / "readme.txt").write_text("no vm here")
        with pytest.raises(EmptyInputError, match="no .vm files"):
            find_vm_files(tmp_path)

    def test_load_units_names_from_stems(self, vm_dir):
        directory = vm_dir("Prog", Sys=SYS, Main=MAIN)
        units = load_units(directory)
        assert [u.name for u in units] == ["Main", "Sys"]
        assert units[0].filename == "Main.vm"

    def test_load_missing_path(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_units(tmp_path / "Missing.vm")

    def test_load_wrong_extension(self, tmp_path):
        path = tmp_path / "Main.txt"
        path.write_text(MAIN)
        with pytest.raises(TranslationError, match=".vm extension"):
            load_units(path)

    def test_output_for_file(self, tmp_path):
        assert resolve_output_path(tmp_path / "Prog.vm") == tmp_path / "Prog.asm"

    def test_output_for_directory(self, vm_dir):
        directory = vm_dir("StaticsTest", Sys=SYS)
        assert resolve_output_path(directory) == directory / "StaticsTest.asm"


# =============================================================================
# Translating Paths
# =============================================================================

class TestTranslatePath:

    def test_single_file(self, tmp_path):
        path = tmp_path / "Simple.vm"
        path.write_text("push constant 7\npush constant 8\nadd\n")

        result = VMTranslator().translate_path(path)

        assert result.output_path == tmp_path / "Simple.asm"
        assert result.units == ["Simple"]
        assert not result.bootstrap_emitted
        assert result.command_count == 3
        assert len(result.function_table) == 0
        text = result.output_path.read_text()
        assert text.startswith("// push constant 7\n@7\n")

    def test_directory(self, vm_dir):
        directory = vm_dir("Prog", Sys=SYS, Main=MAIN)

        result = VMTranslator().translate_path(directory)

        assert result.output_path == directory / "Prog.asm"
        assert result.bootstrap_emitted
        assert result.function_table.lookup("Main.main") == "Main"
        assert result.function_table.lookup("Sys.init") == "Sys"
        assert result.function_table.frozen
        assert result.warnings == []

        text = result.output_path.read_text()
        assert text.index("(Main.main)") < text.index("(Sys.init)")
        assert text.count("// bootstrap") == 1

    def test_explicit_output(self, vm_dir, tmp_path):
        directory = vm_dir("Prog", Sys=SYS, Main=MAIN)
        out = tmp_path / "build.asm"
        result = VMTranslator().translate_path(directory, out)
        assert result.output_path == out
        assert out.exists()

    def test_directory_with_single_unit_has_no_bootstrap(self, vm_dir):
        directory = vm_dir("Solo", Sys=SYS)
        result = VMTranslator().translate_path(directory)
        assert not result.bootstrap_emitted

    def test_syntax_error_writes_nothing(self, vm_dir):
        directory = vm_dir("Broken", Sys=SYS, Main="function Main.main 0\npsh constant 1\n")
        with pytest.raises(VMSyntaxError):
            VMTranslator().translate_path(directory)
        assert not (directory / "Broken.asm").exists()

    @pytest.mark.parametrize("line, error", [
        ("push temp 8", IndexRangeError),
        ("push pointer 2", IndexRangeError),
        ("pop constant 5", SegmentError),
        ("push heap 0", SegmentError),
    ])
    def test_bad_memory_access_writes_nothing(self, vm_dir, line, error):
        # The bad command sits in the unit translated last
        directory = vm_dir("P", A=MAIN.replace("Main", "A"), Z=f"function Z.f 0\n{line}\n")
        with pytest.raises(error):
            VMTranslator().translate_path(directory)
        assert not (directory / "P.asm").exists()

    def test_bad_memory_access_in_single_file(self, tmp_path):
        path = tmp_path / "Solo.vm"
        path.write_text("push constant 1\npop temp 0\npush constant 40000\n")
        with pytest.raises(IndexRangeError) as info:
            VMTranslator().translate_path(path)
        assert info.value.location.line == 3
        assert not (tmp_path / "Solo.asm").exists()

    def test_undecodable_input(self, tmp_path):
        path = tmp_path / "Bin.vm"
        path.write_bytes(b"push constant 1\n\xff\n")
        with pytest.raises(InputReadError, match="byte 0xff"):
            VMTranslator().translate_path(path)
        assert not (tmp_path / "Bin.asm").exists()

    def test_static_names_per_unit(self, vm_dir):
        directory = vm_dir(
            "Statics",
            A="function A.f 0\npush static 0\nreturn\n",
            B="function B.f 0\npush static 0\nreturn\n",
        )
        text = VMTranslator().translate_path(directory).output_path.read_text()
        assert "@A.0" in text
        assert "@B.0" in text


# =============================================================================
# Two-Pass Diagnostics
# =============================================================================

class TestDiagnostics:

    def _translate(self, options=None, **units):
        translator = VMTranslator(options)
        return translator.translate_units(
            [SourceUnit(name, source) for name, source in units.items()]
        )

    def test_duplicate_function_across_units(self):
        with pytest.raises(DuplicateFunctionError) as excinfo:
            self._translate(
                A="function Util.f 0\nreturn",
                B="function Util.f 0\nreturn",
            )
        assert excinfo.value.first_unit == "A"
        assert excinfo.value.second_unit == "B"
        assert "in both 'A' and 'B'" in str(excinfo.value)

    def test_duplicate_function_in_one_unit(self):
        with pytest.raises(DuplicateFunctionError, match="twice in 'A'"):
            self._translate(A="function A.f 0\nreturn\nfunction A.f 0\nreturn", Sys=SYS)

    def test_undefined_call_warns(self):
        result = self._translate(Sys=SYS, Other="function Other.f 0\ncall Math.sqrt 1\nreturn")
        assert any("Main.main" in w for w in result.warnings)
        assert any("Math.sqrt" in w for w in result.warnings)
        assert result.assembly

    def test_undefined_call_reported_once(self):
        caller = "function A.f 0\ncall Gone.g 0\ncall Gone.g 0\nreturn"
        result = self._translate(A=caller, Sys="function Sys.init 0\ncall A.f 0")
        assert len([w for w in result.warnings if "Gone.g" in w]) == 1

    def test_undefined_call_strict(self):
        with pytest.raises(UndefinedFunctionError) as excinfo:
            self._translate(TranslatorOptions(strict_calls=True), Sys=SYS, Other="")
        assert excinfo.value.name == "Main.main"
        assert excinfo.value.location.filename == "Sys.vm"

    def test_single_unit_skips_call_checks(self):
        result = self._translate(TranslatorOptions(strict_calls=True), Sys=SYS)
        assert result.warnings == []

    def test_missing_entry_warns(self):
        result = self._translate(Main=MAIN, Other="function Other.f 0\nreturn")
        assert any("bootstrap calls undefined function 'Sys.init'" in w for w in result.warnings)

    def test_missing_entry_strict(self):
        options = TranslatorOptions(strict_calls=True)
        with pytest.raises(UndefinedFunctionError, match="Sys.init"):
            self._translate(options, Main=MAIN, Other="function Other.f 0\nreturn")

    def test_custom_entry(self):
        options = TranslatorOptions(entry_function="Main.main", emit_comments=False)
        result = self._translate(options, Main=MAIN, Other="function Other.f 0\nreturn")
        assert result.warnings == []
        assert "@Main.main" in result.assembly.splitlines()

    def test_undefined_label_warns(self):
        result = self._translate(Main="goto NOWHERE\nlabel SOMEWHERE")
        assert len(result.warnings) == 1
        assert "jump to undefined label 'NOWHERE'" in result.warnings[0]

    def test_label_checks_can_be_disabled(self):
        result = self._translate(TranslatorOptions(check_labels=False), Main="goto NOWHERE")
        assert result.warnings == []

    def test_duplicate_unit_name(self):
        translator = VMTranslator()
        with pytest.raises(TranslationError, match="used twice"):
            translator.translate_units([SourceUnit("A", ""), SourceUnit("A", "")])

    def test_no_units(self):
        with pytest.raises(TranslationError, match="nothing to translate"):
            VMTranslator().translate_units([])

    def test_collect_functions(self):
        units = [SourceUnit("Main", MAIN), SourceUnit("Sys", SYS)]
        table = VMTranslator().collect_functions(units)
        assert table.frozen
        assert table.dump().splitlines() == ["Main.main = Main", "Sys.init = Sys"]


# =============================================================================
# Options
# =============================================================================

class TestOptions:

    def test_defaults(self):
        options = TranslatorOptions()
        assert options.bootstrap is None
        assert options.emit_comments
        assert not options.strict_calls
        assert options.stack_base == 256
        assert options.entry_function == "Sys.init"

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("HACKVM_COMMENTS", "0")
        monkeypatch.setenv("HACKVM_STRICT", "yes")
        monkeypatch.setenv("HACKVM_STACK_BASE", "512")
        monkeypatch.setenv("HACKVM_ENTRY", "Main.main")
        options = TranslatorOptions.from_env()
        assert not options.emit_comments
        assert options.strict_calls
        assert options.stack_base == 512
        assert options.entry_function == "Main.main"

    def test_from_env_unset(self, monkeypatch):
        for name in ("HACKVM_COMMENTS", "HACKVM_STRICT", "HACKVM_STACK_BASE", "HACKVM_ENTRY"):
            monkeypatch.delenv(name, raising=False)
        assert TranslatorOptions.from_env() == TranslatorOptions()

    def test_from_env_bad_stack_base(self, monkeypatch):
        monkeypatch.setenv("HACKVM_STACK_BASE", "lots")
        assert TranslatorOptions.from_env().stack_base == 256


# =============================================================================
# Convenience Functions
# =============================================================================

class TestConvenience:

    def test_translate_vm_no_comments(self):
        asm = translate_vm("push constant 2", options=TranslatorOptions(emit_comments=False))
        assert asm.splitlines() == ["@2", "D=A", "@SP", "A=M", "M=D", "@SP", "M=M+1"]

    def test_translate_vm_unit_name(self):
        asm = translate_vm("push static 1", unit_name="Counter")
        assert "@Counter.1" in asm

    def test_translate_commands(self):
        asm = translate_commands([push("constant", 1), arithmetic("not")], emit_comments=False)
        assert asm.splitlines()[-1] == "M=!M"
