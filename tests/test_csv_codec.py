"""Tests for the CSV matrix codec."""

from __future__ import annotations

import pytest

from permatrix.catalog import AccessCatalog, AccessType
from permatrix.codecs.csv_codec import (
    decode_cell,
    decode_csv,
    encode_cell,
    encode_csv,
    quote_filter,
    split_row,
    unquote_filter,
)
from permatrix.errors import MalformedHeaderError, ParseFailureError
from permatrix.model import Grant, PermissionModel, Resource


def _grant_tuple(grant: Grant | None):
    if grant is None:
        return None
    return grant.role, grant.access, grant.filter


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------


class TestEncode:
    def test_header_and_rows(self, small_model):
        text = encode_csv(small_model)
        lines = text.split("\n")
        assert lines[0] == "Role,configuration/entityTypes,configuration/relationTypes"
        assert lines[1] == (
            'ADMIN,Read|Create,Read|Update [Filtered: "equals(attributes.Country, ""US"")"]'
        )
        assert lines[2] == "VIEWER,Read,"

    def test_no_trailing_newline(self, small_model):
        assert not encode_csv(small_model).endswith("\n")

    def test_empty_model_is_header_only(self, empty_model):
        assert encode_csv(empty_model) == "Role"

    def test_rows_follow_sorted_role_index(self):
        model = PermissionModel(
            resources=[Resource(uri="r", grants=[Grant(role="Z"), Grant(role="A")])]
        )
        lines = encode_csv(model).split("\n")
        assert [line.split(",")[0] for line in lines[1:]] == ["A", "Z"]

    def test_unknown_kind_rendered_raw(self):
        cell = encode_cell(Grant(role="R", access=["READ", "FOO"]))
        assert cell == "Read|FOO"

    def test_absent_grant_is_empty_cell(self):
        assert encode_cell(None) == ""

    def test_filter_suffix_with_empty_access(self):
        assert encode_cell(Grant(role="R", filter="x")) == ' [Filtered: "x"]'

    def test_labels_come_from_catalog(self):
        catalog = AccessCatalog([AccessType(kind="EXPORT", label="Export Data")])
        assert encode_cell(Grant(role="R", access=["EXPORT"]), catalog) == "Export Data"

    def test_quote_filter_doubles_quotes(self):
        assert quote_filter('a "b" c') == '"a ""b"" c"'


# ---------------------------------------------------------------------------
# Row splitting and cell parsing
# ---------------------------------------------------------------------------


class TestSplitRow:
    def test_plain_cells_trimmed(self):
        assert split_row(" A , Read|Create ,") == ["A", "Read|Create", ""]

    def test_comma_inside_quotes_is_kept(self):
        cells = split_row('R,Read [Filtered: "a, b"],Create')
        assert cells == ["R", 'Read [Filtered: "a, b"]', "Create"]

    def test_doubled_quotes_left_escaped(self):
        cells = split_row('R,Read [Filtered: "say ""hi, there"""]')
        assert cells[1] == 'Read [Filtered: "say ""hi, there"""]'

    def test_unterminated_quote(self):
        with pytest.raises(ParseFailureError, match="line 4"):
            split_row('R,Read [Filtered: "oops]', 4)


class TestDecodeCell:
    def test_labels_to_kinds(self):
        assert decode_cell("Read|Initiate Change") == (["READ", "INITIATE_CHANGE_REQUEST"], None)

    def test_case_insensitive_and_raw(self):
        assert decode_cell("read | MERGE | FOO") == (["READ", "MERGE", "FOO"], None)

    def test_filter_suffix(self):
        access, filter_text = decode_cell('Read|Update [Filtered: "equals(a, ""US"")"]')
        assert access == ["READ", "UPDATE"]
        assert filter_text == 'equals(a, "US")'

    def test_filter_only(self):
        assert decode_cell('[Filtered: "x"]') == ([], "x")

    def test_empty_filter_is_absent(self):
        assert decode_cell('Read [Filtered: ""]') == (["READ"], None)

    def test_filter_ending_in_bracket(self):
        assert decode_cell('Read [Filtered: "a[0]"]') == (["READ"], "a[0]")

    @pytest.mark.parametrize(
        "text",
        ['x"', '"x', '""', "plain", "  padded  ", 'contains(attributes.Name, "A, B\\"C")'],
    )
    def test_unquote_inverts_quote(self, text):
        assert unquote_filter(" " + quote_filter(text) + "]") == text


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------


class TestDecode:
    def test_basic_matrix(self):
        model = decode_csv("Role,a,b\nADMIN,Read|Create,Read\nVIEWER,,Read")
        assert model.uris() == ["a", "b"]
        assert _grant_tuple(model.grant_for("ADMIN", "a")) == ("ADMIN", ["READ", "CREATE"], None)
        assert model.grant_for("VIEWER", "a") is None
        assert _grant_tuple(model.grant_for("VIEWER", "b")) == ("VIEWER", ["READ"], None)

    def test_blank_lines_and_crlf(self):
        model = decode_csv("\r\nRole,a\r\n\r\nADMIN,Read\r\n   \n")
        assert model.roles() == ["ADMIN"]
        assert model.active_access("ADMIN", "a") == ["READ"]

    def test_header_cells_trimmed(self):
        model = decode_csv(" Role , a \nR,Read")
        assert model.uris() == ["a"]

    def test_resources_follow_header_order(self):
        model = decode_csv("Role,first,second\nR,,Read")
        assert model.uris() == ["first", "second"]
        assert model.resource("first").grants == []

    def test_blank_header_column_skipped(self):
        model = decode_csv("Role,,b\nR,Read,Create")
        assert model.uris() == ["b"]
        assert model.active_access("R", "b") == ["CREATE"]

    def test_empty_role_row_skipped(self):
        model = decode_csv("Role,a\n,Read\nR,Read")
        assert model.roles() == ["R"]

    def test_short_rows_and_extra_cells(self):
        model = decode_csv("Role,a,b\nR,Read\nS,Read,Read,Delete")
        assert model.grant_for("R", "b") is None
        assert model.active_access("S", "b") == ["READ"]

    def test_repeated_role_row_replaces_grant(self):
        model = decode_csv("Role,a\nR,Read\nR,Delete")
        assert model.resource("a").grants == [Grant(role="R", access=["DELETE"])]

    def test_malformed_header(self):
        with pytest.raises(MalformedHeaderError) as exc_info:
            decode_csv("Resource,a\nR,Read")
        assert exc_info.value.kind == "MalformedHeader"
        assert exc_info.value.found == "Resource"

    def test_header_is_case_sensitive(self):
        with pytest.raises(MalformedHeaderError):
            decode_csv("role,a\nR,Read")

    def test_empty_document(self):
        with pytest.raises(MalformedHeaderError, match="no header"):
            decode_csv("\n  \n")

    def test_unterminated_quote_aborts(self):
        with pytest.raises(ParseFailureError):
            decode_csv('Role,a\nR,Read [Filtered: "x]\n')


# ---------------------------------------------------------------------------
# Round trips
# ---------------------------------------------------------------------------


class TestRoundTrip:
    def test_filter_with_quote_and_comma(self):
        tricky = 'contains(attributes.Name, "A, B\\"C")'
        model = PermissionModel(
            resources=[
                Resource(uri="a/b", grants=[Grant(role="R", access=["READ"], filter=tricky)]),
                Resource(uri="c", grants=[Grant(role="R", access=["CREATE"])]),
            ]
        )
        decoded = decode_csv(encode_csv(model))
        assert decoded.get_filter("R", "a/b") == tricky
        assert decoded.active_access("R", "c") == ["CREATE"]

    def test_end_to_end_scenario(self, empty_model):
        empty_model.add_resource("configuration/entityTypes", ["ADMIN"])
        empty_model.toggle_access("ADMIN", "configuration/entityTypes", "CREATE")
        text = encode_csv(empty_model)
        assert text == "Role,configuration/entityTypes\nADMIN,Read|Create"
        decoded = decode_csv(text)
        assert _grant_tuple(decoded.grant_for("ADMIN", "configuration/entityTypes")) == (
            "ADMIN",
            ["READ", "CREATE"],
            None,
        )

    def test_example_policy_survives(self, example_model):
        decoded = decode_csv(encode_csv(example_model))
        assert decoded.uris() == example_model.uris()
        for resource in example_model.resources:
            for grant in resource.grants:
                assert _grant_tuple(decoded.grant_for(grant.role, resource.uri)) == _grant_tuple(
                    grant
                )

    def test_unknown_kind_survives(self):
        model = PermissionModel(resources=[Resource(uri="a", grants=[Grant(role="R", access=["FOO"])])])
        assert decode_csv(encode_csv(model)).active_access("R", "a") == ["FOO"]

    def test_empty_access_without_filter_is_dropped(self):
        model = PermissionModel(resources=[Resource(uri="a", grants=[Grant(role="R")])])
        decoded = decode_csv(encode_csv(model))
        # An empty cell carries no grant
        assert decoded.grant_for("R", "a") is None
        assert decoded.uris() == ["a"]

    def test_multiline_filter_cannot_be_read_back(self):
        model = PermissionModel(resources=[Resource(uri="a", grants=[Grant(role="R", access=["READ"])])])
        model.set_filter("R", "a", 'equals(x, "1")\nor equals(y, "2")')
        text = encode_csv(model)
        # Rows are newline-delimited, so the filter splits its row in two
        assert text.count("\n") == 2
        with pytest.raises(ParseFailureError, match="line 2"):
            decode_csv(text)
