import pytest

from linkscript.errors import MissingVramClassForSegmentError, SubgroupCycleError
from linkscript.runtime import RuntimeSettings
from linkscript.writer import LinkerWriter, Phase, join_path

from layout_helpers import block_between, make_document, make_writer, render_script, stripped_lines


EXPECTED_BOOT_SCRIPT = """\
SECTIONS
{
    __romPos = 0x0;

    boot_ROM_START = __romPos;
    boot_VRAM = ADDR(.boot);
    boot_alloc_VRAM = .;

    .boot : AT(boot_ROM_START)
    {
        boot_TEXT_START = .;
        src/boot.o(.text*);
        boot_TEXT_END = .;
        boot_TEXT_SIZE = ABSOLUTE(boot_TEXT_END - boot_TEXT_START);
    }

    boot_alloc_VRAM_END = .;
    boot_alloc_VRAM_SIZE = ABSOLUTE(boot_alloc_VRAM_END - boot_alloc_VRAM);

    boot_noload_VRAM = .;

    .boot.noload (NOLOAD) :
    {
        boot_BSS_START = .;
        src/boot.o(.bss*);
        boot_BSS_END = .;
        boot_BSS_SIZE = ABSOLUTE(boot_BSS_END - boot_BSS_START);
    }

    boot_noload_VRAM_END = .;
    boot_noload_VRAM_SIZE = ABSOLUTE(boot_noload_VRAM_END - boot_noload_VRAM);

    __romPos += SIZEOF(.boot);
    boot_VRAM_END = .;
    boot_VRAM_SIZE = ABSOLUTE(boot_VRAM_END - boot_VRAM);
    boot_ROM_END = __romPos;
    boot_ROM_SIZE = ABSOLUTE(boot_ROM_END - boot_ROM_START);

}
"""


def _boot_document(**segment_extra):
    segment = {"name": "boot", "files": [{"path": "src/boot.o"}]}
    segment.update(segment_extra)
    return make_document(
        [segment],
        settings={"alloc_sections": [".text"], "noload_sections": [".bss"]},
    )


def test_single_segment_script_text():
    assert render_script(_boot_document()) == EXPECTED_BOOT_SCRIPT


def test_symbols_registered_in_emission_order():
    writer = make_writer(_boot_document())
    assert writer.linker_symbols == [
        "boot_ROM_START",
        "boot_VRAM",
        "boot_alloc_VRAM",
        "boot_TEXT_START",
        "boot_TEXT_END",
        "boot_TEXT_SIZE",
        "boot_alloc_VRAM_END",
        "boot_alloc_VRAM_SIZE",
        "boot_noload_VRAM",
        "boot_BSS_START",
        "boot_BSS_END",
        "boot_BSS_SIZE",
        "boot_noload_VRAM_END",
        "boot_noload_VRAM_SIZE",
        "boot_VRAM_END",
        "boot_VRAM_SIZE",
        "boot_ROM_END",
        "boot_ROM_SIZE",
    ]


def test_generation_is_deterministic(small_settings):
    document = make_document(
        [
            {
                "name": "main",
                "files": [
                    {"path": "a.o", "section_order": {".rodata": ".data", ".sdata": ".data"}},
                    {"path": "lib/libc.a", "subfile": "printf.o"},
                ],
            }
        ],
        settings=small_settings,
        symbol_assignments=[{"name": "stack_top", "value": "0x80400000"}],
    )
    first = make_writer(document)
    second = make_writer(document)
    assert first.export_linker_script_to_string() == second.export_linker_script_to_string()
    assert first.export_dependencies_file_to_string("out.ld") == second.export_dependencies_file_to_string("out.ld")
    assert first.export_symbol_header_to_string() == second.export_symbol_header_to_string()


@pytest.mark.parametrize(
    "alloc_sections, expected",
    [
        ([".text", ".rodata", ".data"], ["a.o(.rodata*);", "a.o(.data*);"]),
        ([".text", ".data", ".rodata"], ["a.o(.data*);", "a.o(.rodata*);"]),
        ([".text", ".data"], ["a.o(.data*);", "a.o(.rodata*);"]),
    ],
)
def test_section_order_follows_canonical_section_list(alloc_sections, expected):
    document = make_document(
        [{"name": "main", "files": [{"path": "a.o", "section_order": {".rodata": ".data"}}]}],
        settings={"alloc_sections": alloc_sections, "noload_sections": []},
    )
    script = render_script(document)
    assert block_between(script, "main_DATA_START = .;", "main_DATA_END = .;") == expected
    if ".rodata" in alloc_sections:
        assert block_between(script, "main_RODATA_START = .;", "main_RODATA_END = .;") == []


def test_several_sources_into_one_destination_keep_list_order():
    document = make_document(
        [
            {
                "name": "main",
                "files": [
                    {"path": "a.o", "section_order": {".sdata": ".data", ".rodata": ".data"}},
                ],
            }
        ],
        settings={"alloc_sections": [".data", ".rodata", ".sdata"], "noload_sections": []},
    )
    script = render_script(document)
    assert block_between(script, "main_DATA_START = .;", "main_DATA_END = .;") == [
        "a.o(.data*);",
        "a.o(.rodata*);",
        "a.o(.sdata*);",
    ]


def test_subgroups_are_inlined_after_their_section():
    document = make_document(
        [
            {
                "name": "main",
                "wildcard_sections": False,
                "sections_subgroups": {".text": [".text.unlikely", ".text.hot"]},
                "files": [{"path": "a.o"}, {"path": "b.o"}],
            }
        ],
        settings={"alloc_sections": [".text"], "noload_sections": []},
    )
    script = render_script(document)
    assert block_between(script, "main_TEXT_START = .;", "main_TEXT_END = .;") == [
        "a.o(.text);",
        "a.o(.text.unlikely);",
        "a.o(.text.hot);",
        "b.o(.text);",
        "b.o(.text.unlikely);",
        "b.o(.text.hot);",
    ]


def test_subgroup_cycle_is_rejected():
    document = make_document(
        [
            {
                "name": "main",
                "sections_subgroups": {".text": [".extra"], ".extra": [".text"]},
                "files": [{"path": "a.o"}],
            }
        ],
        settings={"alloc_sections": [".text"], "noload_sections": []},
    )
    writer = LinkerWriter(document)
    with pytest.raises(SubgroupCycleError) as exc:
        writer.add_whole_document()
    assert exc.value.segment == "main"
    assert exc.value.section == ".text"


def test_pad_linker_offset_archive_and_keep(small_settings):
    document = make_document(
        [
            {
                "name": "main",
                "files": [
                    {"path": "a.o", "keep_sections": [".data"]},
                    {"kind": "pad", "pad_amount": 0x20, "section": ".text"},
                    {"kind": "linker_offset", "section": ".data", "linker_offset_name": "table_end"},
                    {"path": "lib/libultra.a", "subfile": "os*.o", "keep_sections": True},
                ],
            }
        ],
        settings=small_settings,
    )
    writer = make_writer(document)
    script = writer.export_linker_script_to_string()
    assert block_between(script, "main_TEXT_START = .;", "main_TEXT_END = .;") == [
        "a.o(.text*);",
        ". += 0x20;",
        "KEEP(lib/libultra.a:os*.o(.text*));",
    ]
    assert block_between(script, "main_DATA_START = .;", "main_DATA_END = .;") == [
        "KEEP(a.o(.data*));",
        "table_end_OFFSET = .;",
        "KEEP(lib/libultra.a:os*.o(.data*));",
    ]
    assert "table_end_OFFSET" in writer.linker_symbols
    assert writer.files_paths == ["a.o", "lib/libultra.a"]


def test_groups_extend_the_base_directory(small_settings):
    settings = dict(small_settings, base_path="build")
    document = make_document(
        [
            {
                "name": "main",
                "dir": "src",
                "files": [
                    {"kind": "group", "dir": "asm", "files": [{"path": "entry.o"}, {"path": "libx.a"}]},
                    {"path": "main.o"},
                ],
            }
        ],
        settings=settings,
    )
    writer = make_writer(document)
    script = writer.export_linker_script_to_string()
    assert block_between(script, "main_TEXT_START = .;", "main_TEXT_END = .;") == [
        "build/src/asm/entry.o(.text*);",
        "build/src/asm/libx.a:*(.text*);",
        "build/src/main.o(.text*);",
    ]
    assert writer.files_paths == ["build/src/asm/entry.o", "build/src/asm/libx.a", "build/src/main.o"]


def test_custom_options_fill_path_placeholders(small_settings):
    settings = dict(small_settings, base_path="build/{version}")
    document = make_document([{"name": "main", "files": [{"path": "{version}_data.o"}]}], settings=settings)
    runtime = RuntimeSettings.from_options(custom_options={"version": "us"})
    script = render_script(document, runtime)
    assert "build/us/us_data.o(.text*);" in stripped_lines(script)


def test_vram_class_emitted_once_and_extended_by_every_segment(small_settings):
    document = make_document(
        [
            {"name": "ovl_a", "vram_class": "ovl", "files": [{"path": "a.o"}]},
            {"name": "ovl_b", "vram_class": "ovl", "files": [{"path": "b.o"}]},
        ],
        settings=small_settings,
        vram_classes=[{"name": "ovl", "fixed_vram": 0x80400000}],
    )
    writer = make_writer(document)
    lines = stripped_lines(writer.export_linker_script_to_string())

    assert lines.count("ovl_CLASS_VRAM = 0x80400000;") == 1
    assert lines.count("ovl_CLASS_VRAM_END = 0x00000000;") == 1
    assert lines.index("ovl_CLASS_VRAM = 0x80400000;") < lines.index("ovl_a_ROM_START = __romPos;")
    assert ".ovl_a ovl_CLASS_VRAM : AT(ovl_a_ROM_START)" in lines
    assert ".ovl_b ovl_CLASS_VRAM : AT(ovl_b_ROM_START)" in lines
    assert "ovl_CLASS_VRAM_END = MAX(ovl_CLASS_VRAM_END, ovl_a_VRAM_END);" in lines
    assert "ovl_CLASS_VRAM_END = MAX(ovl_CLASS_VRAM_END, ovl_b_VRAM_END);" in lines
    assert lines.count("ovl_CLASS_VRAM_SIZE = ovl_CLASS_VRAM_END - ovl_CLASS_VRAM;") == 1
    assert writer.vram_class_emitted("ovl")
    assert writer.linker_symbols.count("ovl_CLASS_VRAM") == 1


def test_vram_class_following_other_classes(small_settings):
    document = make_document(
        [
            {"name": "first", "vram_class": "low", "files": []},
            {"name": "second", "vram_class": "high", "files": []},
        ],
        settings=small_settings,
        vram_classes=[
            {"name": "low", "fixed_symbol": "_heapStart"},
            {"name": "high", "follows_classes": ["low", "mid"]},
        ],
    )
    lines = stripped_lines(render_script(document))
    assert "low_CLASS_VRAM = _heapStart;" in lines
    start = lines.index("high_CLASS_VRAM = 0x00000000;")
    assert lines[start + 1] == "high_CLASS_VRAM = MAX(high_CLASS_VRAM, low_CLASS_VRAM_END);"
    assert lines[start + 2] == "high_CLASS_VRAM = MAX(high_CLASS_VRAM, mid_CLASS_VRAM_END);"
    assert lines[start + 3] == "high_CLASS_VRAM_END = 0x00000000;"


def test_unknown_vram_class_is_an_error(small_settings):
    document = make_document([{"name": "main", "vram_class": "nope", "files": []}], settings=small_settings)
    with pytest.raises(MissingVramClassForSegmentError) as exc:
        make_writer(document)
    assert (exc.value.segment, exc.value.vram_class) == ("main", "nope")


@pytest.mark.parametrize(
    "placement, header",
    [
        ({"fixed_vram": 0x80000400}, ".second 0x80000400 : AT(second_ROM_START)"),
        ({"fixed_symbol": "_bootEnd"}, ".second _bootEnd : AT(second_ROM_START)"),
        ({"follows_segment": "first"}, ".second first_VRAM_END : AT(second_ROM_START)"),
        ({"subalign": 8}, ".second : AT(second_ROM_START) SUBALIGN(8)"),
    ],
)
def test_segment_header_placement(small_settings, placement, header):
    second = {"name": "second", "files": []}
    second.update(placement)
    document = make_document([{"name": "first", "files": []}, second], settings=small_settings)
    assert header in stripped_lines(render_script(document))


def test_alignment_fill_and_gp(small_settings):
    settings = dict(small_settings, hardcoded_gp_value=0x80001000)
    document = make_document(
        [
            {
                "name": "main",
                "segment_start_align": 0x10,
                "segment_end_align": 0x1000,
                "section_end_align": 4,
                "sections_start_alignment": {".data": 8},
                "fill_value": 0,
                "gp_info": {"section": ".data", "offset": 0x7FF0},
                "files": [{"path": "a.o"}],
            }
        ],
        settings=settings,
    )
    lines = stripped_lines(render_script(document))
    assert lines[:3] == ["SECTIONS", "{", "__romPos = 0x0;"]
    assert lines[3] == "_gp = 0x80001000;"
    assert lines[5:7] == ["__romPos = ALIGN(__romPos, 0x10);", ". = ALIGN(., 0x10);"]
    assert "FILL(0x00000000);" in lines
    data_start = lines.index("main_DATA_START = .;")
    assert lines[data_start - 2:data_start] == [". = ALIGN(., 0x8);", "_gp = . + 0x7FF0;"]
    text_end = lines.index("main_TEXT_END = .;")
    assert lines[text_end - 1] == ". = ALIGN(., 0x4);"
    rom_advance = lines.index("__romPos += SIZEOF(.main);")
    assert lines[rom_advance + 1:rom_advance + 3] == [
        "__romPos = ALIGN(__romPos, 0x1000);",
        ". = ALIGN(., 0x1000);",
    ]


def test_end_of_sections_allowlist_and_discard(small_settings):
    settings = dict(
        small_settings,
        sections_allowlist=[".comment"],
        sections_allowlist_extra=[".pdr"],
        sections_denylist=[".reginfo", ".MIPS.abiflags"],
        discard_wildcard_section=True,
    )
    document = make_document([{"name": "main", "files": []}], settings=settings)
    lines = stripped_lines(render_script(document))
    assert lines[-11:] == [
        ".comment 0 : { *(.comment); }",
        "",
        ".pdr 0 : { *(.pdr); }",
        "",
        "/DISCARD/ :",
        "{",
        "*(.reginfo);",
        "*(.MIPS.abiflags);",
        "*(*);",
        "}",
        "}",
    ]


def test_trailing_directives_follow_sections(small_settings):
    document = make_document(
        [{"name": "main", "files": []}],
        settings=small_settings,
        symbol_assignments=[
            {"name": "plain", "value": "0x10"},
            {"name": "provided", "value": "plain + 4", "provide": True},
            {"name": "hidden_sym", "value": "0", "hidden": True},
            {"name": "both", "value": "1", "provide": True, "hidden": True},
        ],
        required_symbols=[{"name": "osInitialize"}],
        asserts=[{"check": "main_VRAM_END <= 0x80400000", "error_message": "main is too big"}],
        entry="entrypoint",
    )
    lines = stripped_lines(render_script(document))
    assert lines[-12:] == [
        "}",
        "",
        "plain = 0x10;",
        "PROVIDE(provided = plain + 4);",
        "HIDDEN(hidden_sym = 0);",
        "PROVIDE_HIDDEN(both = 1);",
        "",
        "EXTERN(osInitialize);",
        "",
        'ASSERT(main_VRAM_END <= 0x80400000, "main is too big");',
        "",
        "ENTRY(entrypoint);",
    ]


def test_conditions_filter_every_directive(small_settings):
    document = make_document(
        [
            {"name": "always", "files": [{"path": "a.o"}, {"path": "dbg.o", "include_if_any": ["debug"]}]},
            {"name": "debug_only", "include_if_all": ["debug", "pal"], "files": []},
        ],
        settings=small_settings,
        symbol_assignments=[{"name": "release_only", "value": "1", "exclude_if_any": ["debug"]}],
        required_symbols=[{"name": "pal_table", "include_if_any": [["region", "pal"]]}],
        asserts=[{"check": "1", "error_message": "x", "exclude_if_all": ["debug", "pal"]}],
    )

    release = stripped_lines(render_script(document))
    assert "dbg.o(.text*);" not in release
    assert "debug_only_ROM_START = __romPos;" not in release
    assert "release_only = 1;" in release
    assert "EXTERN(pal_table);" not in release
    assert 'ASSERT(1, "x");' in release

    runtime = RuntimeSettings.from_options(tags=["debug", "pal"], custom_options={"region": "pal"})
    debug = stripped_lines(render_script(document, runtime))
    assert "dbg.o(.text*);" in debug
    assert "debug_only_ROM_START = __romPos;" in debug
    assert "release_only = 1;" not in debug
    assert "EXTERN(pal_table);" in debug
    assert 'ASSERT(1, "x");' not in debug


def test_gp_info_respects_conditions(small_settings):
    document = make_document(
        [
            {
                "name": "main",
                "gp_info": {"section": ".text", "offset": 0x10, "provide": True, "exclude_if_any": ["no_gp"]},
                "files": [],
            }
        ],
        settings=small_settings,
    )
    assert "PROVIDE(_gp = . + 0x10);" in stripped_lines(render_script(document))
    runtime = RuntimeSettings.from_options(tags=["no_gp"])
    assert "PROVIDE(_gp = . + 0x10);" not in stripped_lines(render_script(document, runtime))


def test_section_symbols_can_be_disabled(small_settings):
    settings = dict(small_settings, emit_section_symbols=False)
    document = make_document([{"name": "main", "files": [{"path": "a.o"}]}], settings=settings)
    writer = make_writer(document)
    assert not any("TEXT" in sym for sym in writer.linker_symbols)
    assert writer.linker_symbols[:2] == ["main_ROM_START", "main_VRAM"]


def test_makerom_style_names(small_settings):
    settings = dict(small_settings, linker_symbols_style="makerom")
    document = make_document([{"name": "boot", "files": [{"path": "a.o"}]}], settings=settings)
    lines = stripped_lines(render_script(document))
    assert "_bootSegmentRomStart = __romPos;" in lines
    assert "_bootSegmentStart = ADDR(.boot);" in lines
    assert "_bootSegmentTextStart = .;" in lines
    assert ".boot : AT(_bootSegmentRomStart)" in lines


def test_single_segment_mode_script():
    document = make_document(
        [{"name": "code", "fixed_vram": 0x80000400, "files": [{"path": "a.o"}]}],
        settings={
            "single_segment_mode": True,
            "alloc_sections": [".text"],
            "noload_sections": [".bss"],
            "emit_sections_kind_symbols": False,
        },
    )
    writer = make_writer(document)
    assert writer.phase is Phase.CLOSED
    assert writer.export_linker_script_to_string().splitlines() == [
        "SECTIONS",
        "{",
        "    . = 0x80000400;",
        "",
        "    code_TEXT_START = .;",
        "    .text :",
        "    {",
        "        a.o(.text*);",
        "    }",
        "    code_TEXT_END = .;",
        "    code_TEXT_SIZE = ABSOLUTE(code_TEXT_END - code_TEXT_START);",
        "",
        "    code_BSS_START = .;",
        "    .bss (NOLOAD) :",
        "    {",
        "        a.o(.bss*);",
        "    }",
        "    code_BSS_END = .;",
        "    code_BSS_SIZE = ABSOLUTE(code_BSS_END - code_BSS_START);",
        "",
        "}",
    ]


def test_single_segment_mode_rejects_several_segments():
    document = make_document(
        [{"name": "one", "files": []}, {"name": "two", "files": []}],
        settings={"single_segment_mode": True},
    )
    writer = LinkerWriter(document)
    with pytest.raises(AssertionError):
        writer.add_whole_document()
    assert writer.buffer.is_empty()


def test_phase_violations_are_fatal(small_settings):
    document = make_document([{"name": "main", "files": []}], settings=small_settings)
    writer = LinkerWriter(document)
    with pytest.raises(AssertionError):
        writer.add_segment(document.segments[0])
    writer.begin_sections()
    with pytest.raises(AssertionError):
        writer.begin_sections()
    writer.end_sections()
    with pytest.raises(AssertionError):
        writer.end_sections()


def test_reference_partial_objects_skips_subgroups_and_segment_dir(small_settings):
    document = make_document(
        [
            {
                "name": "main",
                "dir": "src",
                "sections_subgroups": {".text": [".text.unlikely"]},
                "files": [{"path": "segments/main.o"}],
            }
        ],
        settings=small_settings,
    )
    writer = LinkerWriter(document, reference_partial_objects=True)
    writer.add_whole_document()
    block = block_between(
        writer.export_linker_script_to_string(), "main_TEXT_START = .;", "main_TEXT_END = .;"
    )
    assert block == ["segments/main.o(.text*);"]


def test_paths_keep_their_configured_text(small_settings):
    settings = dict(small_settings, base_path="./build")
    document = make_document(
        [
            {
                "name": "main",
                "dir": "src//",
                "files": [
                    {"path": "./a.o"},
                    {"kind": "group", "dir": "./asm/", "files": [{"path": "../b.o"}]},
                ],
            }
        ],
        settings=settings,
    )
    writer = make_writer(document)
    script = writer.export_linker_script_to_string()
    assert block_between(script, "main_TEXT_START = .;", "main_TEXT_END = .;") == [
        "./build/src//./a.o(.text*);",
        "./build/src//./asm/../b.o(.text*);",
    ]
    assert writer.files_paths == ["./build/src//./a.o", "./build/src//./asm/../b.o"]


@pytest.mark.parametrize(
    "parts, expected",
    [
        (("./build", "./src/a.o"), "./build/./src/a.o"),
        (("build/", "a.o"), "build/a.o"),
        (("", "src", "", "a.o"), "src/a.o"),
        (("build", "/opt/sdk/libc.a"), "/opt/sdk/libc.a"),
        ((), ""),
    ],
)
def test_join_path(parts, expected):
    assert join_path(*parts) == expected
