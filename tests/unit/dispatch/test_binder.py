from dataclasses import dataclass
from types import SimpleNamespace

import pytest

from impromptu.dispatch.binder import bind, is_public, is_reachable, mangle, member_owners
from impromptu.dispatch.keys import OperationKey, OperationKind
from impromptu.utils.exceptions import InvocationError, MemberNotFound


class Vault:
    def __init__(self):
        self.label = "main"
        self._pin = 1234
        self.__seal = "wax"

    def _open(self):
        return "opened"

    @property
    def size(self):
        return 3


class Keeper(Vault):
    pass


class Stranger:
    pass


def _run(kind, name, target, *args, context=None, **kwargs):
    key = OperationKey.for_call(kind, name, args, kwargs, context)
    return bind(key, type(target))(target, args, kwargs)


@pytest.mark.parametrize(
    "name, expected",
    [("greet", True), ("__len__", True), ("_pin", False), ("__seal", False), ("_", False)],
)
def test_is_public(name, expected):
    assert is_public(name) is expected


def test_mangle_follows_compiler_rules():
    assert mangle("__seal", Vault) == "_Vault__seal"
    assert mangle("__len__", Vault) == "__len__"
    assert mangle("_pin", Vault) == "_pin"

    class _Hidden:
        pass

    assert mangle("__x", _Hidden) == "_Hidden__x"


def test_member_owners_for_class_and_instance_members():
    assert member_owners(Keeper, "_open") == (Vault,)
    assert member_owners(Keeper, "_pin") == (Keeper, Vault)


def test_reachability_depends_on_context():
    assert is_reachable(Vault, "_open", Vault)
    assert is_reachable(Vault, "_open", Keeper)
    assert not is_reachable(Vault, "_open", Stranger)
    assert is_reachable(Vault, "label", Stranger)


def test_get_property_on_objects_and_mappings():
    assert _run(OperationKind.GET_PROPERTY, "label", Vault()) == "main"
    assert _run(OperationKind.GET_PROPERTY, "size", Vault()) == 3
    assert _run(OperationKind.GET_PROPERTY, "x", {"x": 1}) == 1
    # Mapping keys shadow mapping methods.
    assert _run(OperationKind.GET_PROPERTY, "items", {"items": [1, 2]}) == [1, 2]
    assert callable(_run(OperationKind.GET_PROPERTY, "keys", {}))


def test_get_property_missing_member():
    with pytest.raises(MemberNotFound) as info:
        _run(OperationKind.GET_PROPERTY, "nope", SimpleNamespace())
    assert info.value.details["reason"] == "absent"


def test_private_members_respect_context():
    vault = Vault()
    assert _run(OperationKind.GET_PROPERTY, "_pin", vault) == 1234
    assert _run(OperationKind.GET_PROPERTY, "_pin", vault, context=Keeper) == 1234
    assert _run(OperationKind.GET_PROPERTY, "__seal", vault, context=Vault) == "wax"
    with pytest.raises(MemberNotFound) as info:
        _run(OperationKind.GET_PROPERTY, "_pin", vault, context=Stranger)
    assert "not accessible" in str(info.value)
    with pytest.raises(MemberNotFound):
        _run(OperationKind.INVOKE_METHOD, "_open", vault, context=Stranger)


def test_property_errors_propagate_unchanged():
    class Faulty:
        @property
        def broken(self):
            raise AttributeError("inner failure")

        @property
        def angry(self):
            raise KeyError("k")

    with pytest.raises(AttributeError, match="inner failure") as info:
        _run(OperationKind.GET_PROPERTY, "broken", Faulty())
    assert not isinstance(info.value, MemberNotFound)
    with pytest.raises(KeyError):
        _run(OperationKind.GET_PROPERTY, "angry", Faulty())


def test_set_property_on_objects_and_mappings():
    bag = {}
    _run(OperationKind.SET_PROPERTY, "x", bag, 42)
    assert bag == {"x": 42}

    ns = SimpleNamespace()
    _run(OperationKind.SET_PROPERTY, "x", ns, 42)
    assert ns.x == 42


def test_set_property_rejects_non_assignable_members():
    @dataclass(frozen=True)
    class Frozen:
        x: int = 1

    @dataclass(frozen=True, slots=True)
    class FrozenSlots:
        x: int

    class Slotted:
        __slots__ = ("a",)

    with pytest.raises(MemberNotFound, match="read-only"):
        _run(OperationKind.SET_PROPERTY, "size", Vault(), 5)
    with pytest.raises(MemberNotFound):
        _run(OperationKind.SET_PROPERTY, "x", Frozen(), 2)
    with pytest.raises(MemberNotFound) as info:
        _run(OperationKind.SET_PROPERTY, "x", FrozenSlots(1), 2)
    assert info.value.details["reason"] == "does not accept assignment"
    with pytest.raises(MemberNotFound):
        _run(OperationKind.SET_PROPERTY, "b", Slotted(), 2)


def test_invoke_method_and_action():
    assert _run(OperationKind.INVOKE_METHOD, "_open", Vault()) == "opened"
    assert _run(OperationKind.INVOKE_METHOD, "upper", "abc") == "ABC"
    assert _run(OperationKind.INVOKE_METHOD, "join", ",", ["a", "b"]) == "a,b"
    assert _run(OperationKind.INVOKE_ACTION, "upper", "abc") is None
    bag = {"greet": lambda name: "Hello, " + name}
    assert _run(OperationKind.INVOKE_METHOD, "greet", bag, "World") == "Hello, World"


def test_invoke_non_callable_member():
    with pytest.raises(InvocationError):
        _run(OperationKind.INVOKE_METHOD, "label", Vault())


def test_invoke_with_incompatible_argument_shape():
    def greet(name):
        return name

    ns = SimpleNamespace(greet=greet)
    with pytest.raises(MemberNotFound) as info:
        _run(OperationKind.INVOKE_METHOD, "greet", ns, "a", "b")
    assert info.value.details["reason"] == "argument shape"
    assert isinstance(info.value.__cause__, TypeError)


def test_type_errors_raised_inside_member_propagate():
    def fails(value):
        raise TypeError("inside")

    ns = SimpleNamespace(fails=fails)
    with pytest.raises(TypeError, match="inside") as info:
        _run(OperationKind.INVOKE_METHOD, "fails", ns, 1)
    assert not isinstance(info.value, MemberNotFound)
