"""
Namespace binding helper tests.
"""

import pytest

from group_approval.contract.errors import ErrorKind, FormatError
from group_approval.contract.names import bind_namespace, name_segments, parent_names, split_name


class TestSplitName:

    def test_two_segments(self):
        assert split_name("groupapproval.pb") == ("groupapproval", "pb")

    def test_deep_name(self):
        assert split_name("a.b.c") == ("a", "b.c")

    def test_root_name(self):
        assert split_name("pb") == ("pb", None)

    def test_parent_names_nearest_first(self):
        assert parent_names("a.b.c") == ["b.c", "c"]
        assert parent_names("pb") == []

    @pytest.mark.parametrize("name", ["", ".", "a..b", ".pb", "approval.", "a. .pb", " "])
    def test_malformed(self, name):
        with pytest.raises(FormatError) as exc_info:
            name_segments(name)
        assert exc_info.value.kind is ErrorKind.FORMAT

    def test_non_string(self):
        with pytest.raises(FormatError):
            split_name(None)  # type: ignore[arg-type]


class TestBindNamespace:

    def test_directive(self):
        directive = bind_namespace("groupapproval.pb", "tp1contract")
        assert directive.label == "groupapproval"
        assert directive.parent == "pb"
        assert directive.name == "groupapproval.pb"
        assert directive.restricted is True
        assert directive.to_dict() == {
            "type": "bind_namespace",
            "name": "groupapproval.pb",
            "owner": "tp1contract",
            "restricted": True,
        }

    def test_unrestricted_root(self):
        directive = bind_namespace("pb", "tp1chain", restricted=False)
        assert directive.parent is None
        assert directive.name == "pb"
        assert directive.restricted is False

    def test_malformed_name(self):
        with pytest.raises(FormatError, match=r"invalid name \[a\.\.b\]"):
            bind_namespace("a..b", "tp1contract")
