"""Tests for the search index decoders and generation dispatch."""

from collections import Counter

import pytest

from docsrs_links.errors import (
    CrateDataMissingError,
    DecodeError,
    UnsupportedIndexVersionError,
)
from docsrs_links.models import ForeignIndex, Index, ItemKind, SelfIndex
from docsrs_links.search_index import (
    IndexVersion,
    decode,
    decode_crates,
    detect_version,
)


class TestFixtures:
    """Decoding the anyhow fixtures of every generation."""

    def test_crate_name(self, anyhow_index):
        assert anyhow_index.crate_name == "anyhow"

    def test_every_item_lives_in_the_crate_module(self, anyhow_index):
        assert {item.module_path for item in anyhow_index.items} == {"anyhow"}

    def test_parent_references_are_in_bounds(self, anyhow_index):
        for item in anyhow_index.items:
            if isinstance(item.parent, SelfIndex):
                target = anyhow_index.items[item.parent.index]
                assert target.parent is None
            elif isinstance(item.parent, ForeignIndex):
                assert item.parent.index < len(anyhow_index.paths)

    def test_decoding_is_deterministic(self, payload):
        first, second = decode(payload), decode(payload)
        assert first == second
        assert len(first) == len(second)
        assert Counter(i.kind for i in first.items) == Counter(
            i.kind for i in second.items
        )

    def test_with_context_is_a_trait_method(self, anyhow_index):
        (item,) = [i for i in anyhow_index.items if i.name == "with_context"]
        assert item.kind is ItemKind.TY_METHOD
        assert isinstance(item.parent, SelfIndex)
        context = anyhow_index.items[item.parent.index]
        assert (context.kind, context.name) == (ItemKind.TRAIT, "Context")

    def test_index_round_trips_through_json(self, anyhow_index):
        restored = Index.model_validate_json(anyhow_index.model_dump_json())
        assert restored == anyhow_index

    def test_detect_version(self, generation, payload):
        assert detect_version(payload.decode()) is IndexVersion(generation)

    def test_hinted_generation(self, generation, payload):
        assert decode(payload, version_hint=generation).crate_name == "anyhow"


class TestV1:
    """The JavaScript literal generation (anyhow 1.0.0)."""

    def test_sizes(self, v1_index):
        assert len(v1_index) == 40
        assert [(p.kind, p.name) for p in v1_index.paths] == [
            (ItemKind.STRUCT, "Error"),
            (ItemKind.TRAIT, "Context"),
            (ItemKind.STRUCT, "Chain"),
        ]

    def test_string_table_references(self, v1_index):
        # R[6] is "anyhow", both as the first module path and as a macro name
        assert v1_index.items[0].module_path == "anyhow"
        assert v1_index.items[16].name == "anyhow"
        assert v1_index.items[16].kind is ItemKind.MACRO

    def test_parents_are_zero_based(self, v1_index):
        new = v1_index.items[2]
        assert new.name == "new"
        assert new.kind is ItemKind.METHOD
        assert new.parent == SelfIndex(index=1)
        # Parent 2 is Chain, the first item
        assert v1_index.items[17].parent == SelfIndex(index=0)

    def test_empty_descriptions_become_none(self, v1_index):
        assert v1_index.items[0].description == "Iterator of a chain of source errors."
        assert v1_index.items[17].description is None

    def test_kind_counts(self, v1_index):
        kinds = Counter(item.kind for item in v1_index.items)
        assert kinds[ItemKind.STRUCT] == 2
        assert kinds[ItemKind.TY_METHOD] == 2
        assert kinds[ItemKind.MACRO] == 2
        assert kinds[ItemKind.METHOD] == 32


class TestV2:
    """The row layout wrapped in JSON.parse (hand-made anyhow fixture)."""

    def test_sizes(self, v2_index):
        assert len(v2_index) == 20
        assert len(v2_index.paths) == 3

    def test_javascript_escapes_are_undone(self, v2_index):
        assert v2_index.items[6].description == (
            "The lowest level cause of this error, this error's cause's cause's "
            "cause etc."
        )
        assert '"assert!"' in v2_index.items[12].description

    def test_parents(self, v2_index):
        assert v2_index.items[2].parent == SelfIndex(index=1)
        assert v2_index.items[10].parent == SelfIndex(index=8)
        assert v2_index.items[14].parent == SelfIndex(index=0)

    def test_rejects_columnar_payload(self, read_payload):
        with pytest.raises(DecodeError, match="row layout"):
            decode(read_payload("v3"), version_hint="v2")


class TestV3:
    """The columnar generation (anyhow 1.0.72)."""

    def test_sizes(self, v3_index):
        assert len(v3_index) == 56
        assert len(v3_index.paths) == 21

    def test_letter_kinds(self, v3_index):
        assert [item.kind for item in v3_index.items[:6]] == [
            ItemKind.STRUCT,
            ItemKind.TRAIT,
            ItemKind.STRUCT,
            ItemKind.FUNCTION,
            ItemKind.TYPEDEF,
            ItemKind.MACRO,
        ]

    def test_parents_are_one_based(self, v3_index):
        # "new" twice: once for Error (p[1]), once for Chain (p[4])
        assert v3_index.items[40].parent == SelfIndex(index=2)
        assert v3_index.items[41].parent == SelfIndex(index=0)
        assert v3_index.items[0].parent is None

    def test_crate_doc(self, read_payload):
        (crate,) = decode_crates(read_payload("v3"), version="1.0.72")
        assert crate.version == "1.0.72"
        assert "crates-io" in crate.doc

    def test_foreign_parent(self, demo_index):
        assert demo_index.items[1].parent == SelfIndex(index=0)
        assert demo_index.items[2].parent == ForeignIndex(index=1)
        assert demo_index.items[2].description is None
        assert {item.module_path for item in demo_index.items} == {"demo::widgets"}

    def test_parent_of_another_kind_is_foreign(self, make_v3_payload, demo_crate):
        crate = demo_crate(p=[[4, "Widget"], [8, "Display"]])
        index = decode(make_v3_payload({"demo": crate}))
        assert index.items[1].parent == ForeignIndex(index=0)

    def test_numeric_kinds_and_sparse_paths(self, make_v3_payload, demo_crate):
        crate = demo_crate(t=[3, 11, 11], q=[[0, "demo::widgets"]])
        index = decode(make_v3_payload({"demo": crate}))
        assert [item.kind for item in index.items] == [
            ItemKind.STRUCT,
            ItemKind.METHOD,
            ItemKind.METHOD,
        ]
        assert index.items[2].module_path == "demo::widgets"

    def test_sparse_paths_switch_modules(self, make_v3_payload, demo_crate):
        crate = demo_crate(i=[0, 0, 0], q=[[0, "demo"], [2, "demo::fmt"]])
        index = decode(make_v3_payload({"demo": crate}))
        assert [item.module_path for item in index.items] == [
            "demo",
            "demo",
            "demo::fmt",
        ]

    def test_missing_descriptions(self, make_v3_payload, demo_crate):
        crate = demo_crate()
        del crate["d"]
        index = decode(make_v3_payload({"demo": crate}))
        assert all(item.description is None for item in index.items)

    def test_list_of_crate_pairs(self, make_v3_payload, demo_crate):
        payload = make_v3_payload([["demo", demo_crate()]])
        assert len(decode(payload)) == 3

    def test_empty_crate(self, make_v3_payload):
        crate = {"doc": "", "t": "", "n": [], "q": [], "d": [], "i": [], "p": []}
        index = decode(make_v3_payload({"empty": crate}))
        assert len(index) == 0


class TestMalformedPayloads:
    """Shape errors are reported as DecodeError, never swallowed."""

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"n": ["Widget", "new"]}, "'t' has 3 entries for 2 items"),
            ({"i": [0, 1]}, "'i' has 2 entries"),
            ({"d": ["only one"]}, "'d' has 1 entries"),
            ({"t": "DL?"}, "invalid item type character"),
            ({"t": [3, 11, 99]}, "unknown item type code 99"),
            ({"i": [0, 1, 3]}, "out of range"),
            ({"q": ["", "", ""]}, "no module path"),
            ({"q": [[5, "demo"]]}, "out of range"),
            ({"p": [[3]]}, "expected \\[kind, name\\]"),
            ({"n": ["Widget", "", "fmt"]}, "invalid item name"),
        ],
    )
    def test_v3_shape_errors(self, make_v3_payload, demo_crate, overrides, message):
        payload = make_v3_payload({"demo": demo_crate(**overrides)})
        with pytest.raises(DecodeError, match=message) as exc_info:
            decode(payload, version_hint="v3")
        assert exc_info.value.generation == "v3"

    def test_missing_column(self, make_v3_payload, demo_crate):
        crate = demo_crate()
        del crate["n"]
        with pytest.raises(DecodeError, match="has no 'n' field"):
            decode(make_v3_payload({"demo": crate}), version_hint="v3")

    def test_v1_parent_out_of_range(self):
        payload = (
            'var N=null,searchIndex={};\n'
            'searchIndex["demo"]={"doc":"","i":[[3,"Widget","demo","",N,N],'
            '[11,"new","","",1,N]],"p":[[3,"Widget"]]};\n'
            "initSearch(searchIndex);addSearchOptions(searchIndex);\n"
        )
        with pytest.raises(DecodeError, match="parent index 1 out of range"):
            decode(payload, version_hint="v1")

    def test_v1_without_search_index(self):
        with pytest.raises(DecodeError, match="no searchIndex"):
            decode("var a=1;", version_hint="v1")

    def test_invalid_json(self):
        with pytest.raises(DecodeError, match="invalid JSON"):
            decode("var searchIndex = JSON.parse('{\"a\":');", version_hint="v3")

    def test_unterminated_json_parse(self):
        with pytest.raises(DecodeError, match="unterminated"):
            decode("var searchIndex = JSON.parse('{}", version_hint="v2")

    def test_invalid_utf8(self):
        with pytest.raises(DecodeError, match="UTF-8") as exc_info:
            decode_crates(b"var a=\"\xff\";")
        assert exc_info.value.offset == 7


class TestDispatch:
    """Generation detection and fall-through."""

    def test_unknown_payload_lists_every_attempt(self):
        with pytest.raises(UnsupportedIndexVersionError) as exc_info:
            decode_crates("this is not a search index")
        assert set(exc_info.value.attempts) == {"v1", "v2", "v3"}
        assert isinstance(exc_info.value, DecodeError)

    def test_decodes_without_footer(self, read_payload):
        text = read_payload("v2").decode()
        body = text[: text.index("addSearchOptions")]
        assert detect_version(body) is None
        assert len(decode(body)) == 20

    def test_wrong_footer_falls_through(self, read_payload):
        text = read_payload("v3").decode()
        body = text[: text.index("if (typeof")]
        payload = body + "initSearch(searchIndex);addSearchOptions(searchIndex);\n"
        assert detect_version(payload) is IndexVersion.V1
        assert len(decode(payload)) == 56

    def test_hint_disables_fall_through(self, read_payload):
        with pytest.raises(DecodeError) as exc_info:
            decode(read_payload("v3"), version_hint=IndexVersion.V1)
        assert not isinstance(exc_info.value, UnsupportedIndexVersionError)

    def test_accepts_text(self, read_payload):
        assert len(decode(read_payload("v1").decode())) == 40

    def test_pick_crate_by_name(self, make_v3_payload, demo_crate):
        payload = make_v3_payload({"demo": demo_crate(), "other": demo_crate()})
        assert decode(payload, crate_name="other").crate_name == "other"
        assert len(decode_crates(payload)) == 2

    def test_several_crates_need_a_name(self, make_v3_payload, demo_crate):
        payload = make_v3_payload({"demo": demo_crate(), "other": demo_crate()})
        with pytest.raises(CrateDataMissingError):
            decode(payload)

    def test_missing_crate(self, read_payload):
        with pytest.raises(CrateDataMissingError, match="serde"):
            decode(read_payload("v3"), crate_name="serde")

    def test_unknown_hint(self, read_payload):
        with pytest.raises(DecodeError, match="unknown index version 'v4'"):
            decode(read_payload("v3"), version_hint="v4")

    def test_deep_nesting_is_an_attempt(self):
        payload = "var searchIndex={};var R=" + "[" * 5000 + "]" * 5000 + ";"
        with pytest.raises(UnsupportedIndexVersionError) as exc_info:
            decode_crates(payload)
        assert "nesting too deep" in exc_info.value.attempts["v1"].message

    def test_deep_json_nesting(self):
        nested = "[" * 100000 + "]" * 100000
        payload = f"var searchIndex = JSON.parse('{nested}');"
        with pytest.raises(DecodeError, match="nested too deep"):
            decode(payload, version_hint="v3")
