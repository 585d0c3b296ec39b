"""
Tests for SecretReference and the reference grammars.

Tests cover:
- ref:version encoding and decoding
- Validation of ids, versions, namespaces and remixes
- Derived copies (with_namespace, with_remix)
- Canonical rendering and parsing
"""
import pytest
from pydantic import ValidationError

from secrets_kms import InvalidReferenceError, Remix, SecretReference
from secrets_kms.reference import (
    NAMESPACE_MAX_LENGTH,
    is_valid_namespace,
    is_valid_ref,
    is_valid_version,
)


# --- Codec ---

class TestEncodeDecode:
    """Tests for the bare ref:version codec."""

    def test_encode_pads_version(self):
        """Test versions are zero-padded to five digits."""
        assert SecretReference.encode("ref", 5) == "ref:00005"
        assert SecretReference.encode("my-secret", 65534) == "my-secret:65534"

    def test_decode(self):
        """Test a padded string decodes to its parts."""
        ref = SecretReference.decode("ref:00005")
        assert ref.ref == "ref"
        assert ref.version == 5
        assert ref.namespace is None
        assert ref.remix is None

    def test_decode_unpadded(self):
        """Test decoding tolerates missing zero padding."""
        assert SecretReference.decode("test:12").version == 12

    def test_round_trip(self):
        """Test decode(encode(r, v)) returns the same parts."""
        decoded = SecretReference.decode(SecretReference.encode("test", 12))
        assert (decoded.ref, decoded.version) == ("test", 12)

    @pytest.mark.parametrize("value", [
        "ref", "", ":5", "ref:", "ref:abc", "ref:-1", "ref:65535",
        "a:1", "bad.id:1", "ref:1:2", None, 42,
    ])
    def test_decode_invalid(self, value):
        """Test malformed references fail to decode."""
        with pytest.raises(InvalidReferenceError):
            SecretReference.decode(value)

    @pytest.mark.parametrize("digits", ["١٢", "１２", "1٢"])
    def test_non_ascii_digits_rejected(self, digits):
        """Test only ASCII digits are accepted as a version or iteration count."""
        with pytest.raises(InvalidReferenceError):
            SecretReference.decode(f"abc:{digits}")
        with pytest.raises(InvalidReferenceError):
            SecretReference.parse(f"abc:{digits}")
        with pytest.raises(InvalidReferenceError):
            SecretReference.parse(f"abc:00012[*]:msg:{digits}")


# --- Validation ---

class TestCreate:
    """Tests for SecretReference.create()."""

    def test_minimal(self):
        """Test a reference with only id and version."""
        ref = SecretReference.create("alpha", 0)
        assert ref.key_ref == "alpha:00000"
        assert str(ref) == "alpha:00000"

    @pytest.mark.parametrize("ref", [
        "a", "-ab", "_ab", "ab!", "a b", "x" * 41, "", None,
    ])
    def test_invalid_ref(self, ref):
        """Test ids violating the grammar are rejected."""
        with pytest.raises(InvalidReferenceError):
            SecretReference.create(ref, 1)

    @pytest.mark.parametrize("version", [-1, 65535, 100000, True, "1", 1.0])
    def test_invalid_version(self, version):
        """Test versions outside [0, 65535) or of the wrong type are rejected."""
        with pytest.raises(InvalidReferenceError):
            SecretReference.create("alpha", version)

    def test_namespace(self):
        """Test namespaces of up to four segments are accepted."""
        ref = SecretReference.create("alpha", 3, namespace="n1/n2/n3/n4")
        assert ref.namespace == "n1/n2/n3/n4"

    def test_longest_namespace(self):
        """Test a namespace at the maximum length is accepted."""
        namespace = "/".join(["x" * 40] * 4)
        assert len(namespace) == NAMESPACE_MAX_LENGTH
        assert SecretReference.create("alpha", 1, namespace).namespace == namespace

    @pytest.mark.parametrize("namespace", [
        "", "n1/n2/n3/n4/n5", "/n1", "n1/", "n1//n2", "../n1", "x" * 41,
    ])
    def test_invalid_namespace(self, namespace):
        """Test namespaces violating the grammar are rejected."""
        with pytest.raises(InvalidReferenceError):
            SecretReference.create("alpha", 1, namespace=namespace)

    def test_remix(self):
        """Test a remix is built from a message and iteration count."""
        ref = SecretReference.create("alpha", 1, remix_message="msg", remix_iterations=3)
        assert ref.remix == Remix(message="msg", iterations=3)

    @pytest.mark.parametrize("message,iterations", [
        ("msg", None), (None, 3),
    ])
    def test_remix_requires_both_parts(self, message, iterations):
        """Test remix message and iterations must be given together."""
        with pytest.raises(InvalidReferenceError, match="together"):
            SecretReference.create(
                "alpha", 1, remix_message=message, remix_iterations=iterations
            )

    @pytest.mark.parametrize("message,iterations", [
        ("m", 1), ("bad msg", 1), ("msg", 0), ("msg", -2), ("msg", "3"),
    ])
    def test_invalid_remix(self, message, iterations):
        """Test remix parts are validated."""
        with pytest.raises(InvalidReferenceError):
            SecretReference.create(
                "alpha", 1, remix_message=message, remix_iterations=iterations
            )

    def test_reference_is_immutable(self):
        """Test references cannot be changed after creation."""
        ref = SecretReference.create("alpha", 1)
        with pytest.raises(ValidationError):
            ref.version = 2


# --- Derived copies ---

class TestDerivedCopies:
    """Tests for with_namespace() and with_remix()."""

    def test_with_namespace(self):
        """Test with_namespace returns a new reference and keeps the original."""
        base = SecretReference.create("alpha", 7)
        scoped = base.with_namespace("team/app")
        assert scoped.namespace == "team/app"
        assert (scoped.ref, scoped.version) == ("alpha", 7)
        assert base.namespace is None

    def test_with_namespace_invalid(self):
        """Test with_namespace validates the namespace."""
        with pytest.raises(InvalidReferenceError):
            SecretReference.create("alpha", 7).with_namespace("a/b/c/d/e")

    def test_with_remix(self):
        """Test with_remix keeps the namespace and adds the remix."""
        base = SecretReference.create("alpha", 7, namespace="team")
        remixed = base.with_remix("derive", 2)
        assert remixed.namespace == "team"
        assert remixed.remix.message == "derive"
        assert remixed.remix.iterations == 2
        assert base.remix is None

    @pytest.mark.parametrize("message,iterations", [("x", 1), ("msg", 0)])
    def test_with_remix_invalid(self, message, iterations):
        """Test with_remix validates its parts."""
        with pytest.raises(InvalidReferenceError):
            SecretReference.create("alpha", 7).with_remix(message, iterations)


# --- Canonical form ---

class TestCanonicalForm:
    """Tests for __str__() and parse()."""

    def test_full_form(self):
        """Test rendering with namespace and remix."""
        ref = SecretReference.create(
            "ref", 12, namespace="ns", remix_message="msg", remix_iterations=3
        )
        assert str(ref) == "ns@ref:00012[*]:msg:3"

    def test_parse_full_form(self):
        """Test parsing restores every part."""
        ref = SecretReference.parse("ns/sub@ref:00012[*]:msg:3")
        assert ref.namespace == "ns/sub"
        assert ref.ref == "ref"
        assert ref.version == 12
        assert ref.remix == Remix(message="msg", iterations=3)
        assert str(ref) == "ns/sub@ref:00012[*]:msg:3"

    def test_parse_normalizes_padding(self):
        """Test parsing then rendering yields the padded form."""
        assert str(SecretReference.parse("ref:7")) == "ref:00007"
        assert str(SecretReference.parse("ns@ref:7")) == "ns@ref:00007"

    @pytest.mark.parametrize("value", [
        "ref:00012[*]msg:3",
        "ref:00012[*]:msg",
        "ref:00012[*]:msg:x",
        "ref:00012[*]:msg:0",
        "@ref:00012",
        "a/b/c/d/e@ref:00012",
        "ns@ref",
        None,
    ])
    def test_parse_invalid(self, value):
        """Test malformed canonical strings are rejected."""
        with pytest.raises(InvalidReferenceError):
            SecretReference.parse(value)


# --- Grammar helpers ---

class TestGrammarHelpers:
    """Tests for the boolean grammar checks."""

    def test_is_valid_ref(self):
        assert is_valid_ref("ab")
        assert is_valid_ref("A1_b-2")
        assert not is_valid_ref("a")
        assert not is_valid_ref(12)

    def test_is_valid_version(self):
        assert is_valid_version(0)
        assert is_valid_version(65534)
        assert not is_valid_version(65535)
        assert not is_valid_version(False)

    def test_is_valid_namespace(self):
        assert is_valid_namespace("child1/child2")
        assert not is_valid_namespace("child1/../child2")
        assert not is_valid_namespace(None)
