"""
Tests for TrustGate allow-lists.

Tests cover:
- Exact class identity for consumers and namespace classes
- Dotted class names resolved at construction
- Rejection of invalid identities
- Immutability and diagnostics
"""
import sys
from collections import OrderedDict

import pytest

from secrets_kms import SecretsNamespace, TrustGate, TrustGateConfigError
from secrets_kms.trust import qualified_name


class Alpha:
    pass


class Beta:
    pass


class AlphaChild(Alpha):
    pass


@pytest.fixture
def gate():
    return TrustGate([Alpha], [Beta])


class TestMembership:
    """Tests for can_utilize_secrets() and is_valid_namespace()."""

    def test_consumer_instance_and_class(self, gate):
        """Test both instances and classes of a trusted consumer pass."""
        assert gate.can_utilize_secrets(Alpha()) is True
        assert gate.can_utilize_secrets(Alpha) is True

    def test_subclass_not_trusted(self, gate):
        """Test subclasses of a trusted class are not trusted."""
        assert gate.can_utilize_secrets(AlphaChild()) is False
        assert gate.can_utilize_secrets(AlphaChild) is False

    def test_lists_are_disjoint(self, gate):
        """Test consumer and namespace trust do not leak into each other."""
        assert gate.is_valid_namespace(Alpha) is False
        assert gate.can_utilize_secrets(Beta()) is False
        assert gate.is_valid_namespace(Beta()) is True

    def test_class_in_both_lists(self):
        """Test a class listed twice is trusted for both roles."""
        gate = TrustGate([Alpha], [Alpha])
        assert gate.can_utilize_secrets(Alpha())
        assert gate.is_valid_namespace(Alpha())

    def test_empty_gate(self):
        """Test an empty gate trusts nothing."""
        gate = TrustGate()
        assert gate.can_utilize_secrets(Alpha()) is False
        assert gate.is_valid_namespace(SecretsNamespace) is False

    def test_unrelated_subjects(self, gate):
        """Test arbitrary values are simply not trusted."""
        assert gate.can_utilize_secrets(None) is False
        assert gate.can_utilize_secrets(42) is False
        assert gate.can_utilize_secrets([]) is False
        assert gate.is_valid_namespace(object()) is False

    def test_input_lists_are_copied(self):
        """Test mutating the constructor input does not change the gate."""
        consumers = [Alpha]
        gate = TrustGate(consumers, [])
        consumers.append(Beta)
        assert gate.can_utilize_secrets(Beta()) is False


class TestDottedNames:
    """Tests for classes given as dotted names."""

    def test_resolves_dotted_names(self):
        """Test dotted names resolve to the classes they name."""
        gate = TrustGate(
            ["collections.OrderedDict"],
            ["secrets_kms.storage.namespace.SecretsNamespace"],
        )
        assert gate.can_utilize_secrets(OrderedDict()) is True
        assert gate.is_valid_namespace(SecretsNamespace) is True
        assert gate.can_utilize_secrets(dict()) is False

    def test_subject_given_by_name(self):
        """Test subjects may also be given as dotted names."""
        gate = TrustGate([OrderedDict], [])
        assert gate.can_utilize_secrets("collections.OrderedDict") is True
        assert gate.can_utilize_secrets("does.not.Exist") is False
        assert gate.can_utilize_secrets("") is False

    def test_name_lookup_does_not_import(self, monkeypatch):
        """Test looking up a dotted name never imports its module."""
        monkeypatch.delitem(sys.modules, "this", raising=False)
        gate = TrustGate([OrderedDict], [SecretsNamespace])

        assert gate.can_utilize_secrets("this.s") is False
        assert gate.is_valid_namespace("this.s") is False
        assert "this" not in sys.modules
        assert gate.is_valid_namespace(
            "secrets_kms.storage.namespace.SecretsNamespace"
        ) is True

    @pytest.mark.parametrize("identity", [
        123, "", None, "NonExistentClass", "does.not.Exist", "os.path.join",
    ])
    def test_invalid_identity(self, identity):
        """Test identities that do not name a class are rejected."""
        with pytest.raises(TrustGateConfigError):
            TrustGate([identity], [])
        with pytest.raises(TrustGateConfigError):
            TrustGate([], [identity])


class TestGateObject:
    """Tests for immutability and diagnostics."""

    def test_immutable(self, gate):
        """Test attributes cannot be reassigned."""
        with pytest.raises(AttributeError):
            gate._consumers = {}
        with pytest.raises(AttributeError):
            gate.extra = True

    def test_inspect(self):
        """Test inspect lists qualified names of trusted classes."""
        gate = TrustGate([Alpha, OrderedDict], [SecretsNamespace])
        info = gate.inspect()
        assert info["secret_consumers"] == (
            f"{qualified_name(Alpha)}, collections.OrderedDict"
        )
        assert info["namespace_classes"] == (
            "secrets_kms.storage.namespace.SecretsNamespace"
        )

    def test_repr(self, gate):
        assert repr(gate) == "<TrustGate consumers=1 namespaces=1>"
