"""
Account contract tests
- ownership transfer (allowed / rejected)
- host registration: symmetry, fee gate, idempotence, fee forwarding
- host removal: unilateral, precondition, re-registration policy
- metadata store (data) writes by the account owner
"""

from __future__ import annotations

import pytest

from hostreg.contracts.links import HOST_ONLY, LINKED, UNLINKED, link_status
from hostreg.errors import InsufficientFee, NotAuthorized, NotOwner, NotRegistered, Revert

ACCOUNT_DATA_KEY = "name"
ACCOUNT_DATA_VALUE = "Jain"


# ----------------------------------------------------------------- ownership


def test_change_owner_allowed_by_owner(net):
    net.chain.call(net.deployment.account, "change_owner", net.stranger, sender=net.account_owner)
    assert net.account.owner() == net.stranger


def test_change_owner_disallowed_from_non_owner(net):
    with pytest.raises(NotOwner) as ei:
        net.chain.call(net.deployment.account, "change_owner", net.stranger, sender=net.stranger)
    assert ei.value.reason == "Account.changeOwner: message sender not an owner"
    assert net.account.owner() == net.account_owner


def test_change_owner_emits_event(net):
    mark = net.chain.events.mark()
    net.chain.call(net.deployment.account, "change_owner", net.stranger, sender=net.account_owner)
    (ev,) = net.chain.events.since(mark)
    assert ev.name == b"OwnershipTransferred"
    assert ev.address == net.deployment.account
    assert ev.args == {"previous": net.account_owner, "new": net.stranger}


def test_new_owner_takes_over_registration(net):
    net.chain.call(net.deployment.account, "change_owner", net.stranger, sender=net.account_owner)
    with pytest.raises(NotOwner):
        net.register()
    net.chain.call(net.deployment.account, "host_register", net.deployment.host, sender=net.stranger, value=100)
    assert net.account.is_linked(net.deployment.host)


# -------------------------------------------------------------- registration


def test_host_register_allowed_by_owner(net):
    net.register()
    assert net.account_registered().has(net.deployment.host)
    assert net.host_registered().has(net.deployment.account)
    assert link_status(net.chain, net.deployment.account, net.deployment.host) == LINKED


def test_host_register_disallowed_from_non_owner(net):
    with pytest.raises(NotOwner) as ei:
        net.chain.call(net.deployment.account, "host_register", net.deployment.host, sender=net.stranger)
    assert ei.value.reason == "Account.hostRegister: message sender not an owner"
    assert not net.account_registered().has(net.deployment.host)


def test_host_register_below_fee_changes_nothing(net):
    before = net.chain.balance_of(net.account_owner)
    with pytest.raises(InsufficientFee) as ei:
        net.register(value=99)
    assert ei.value.reason == "Account.hostRegister: insufficient fee"
    assert net.chain.balance_of(net.account_owner) == before
    assert net.chain.balance_of(net.deployment.host) == 0
    assert not net.account_registered().has(net.deployment.host)
    assert not net.host_registered().has(net.deployment.account)


def test_host_register_forwards_fee_to_host(net):
    before = net.chain.balance_of(net.account_owner)
    net.register(value=150)
    assert net.chain.balance_of(net.account_owner) == before - 150
    assert net.chain.balance_of(net.deployment.host) == 150
    assert net.chain.balance_of(net.deployment.account) == 0


def test_host_register_is_idempotent(net):
    mark = net.chain.events.mark()
    net.register()
    net.register()
    assert net.account.is_linked(net.deployment.host)
    assert net.host.is_linked(net.deployment.account)
    added = [e for e in net.chain.events.since(mark) if e.name == b"AddressAdded"]
    # one insert per side, the repeat is a no-op
    assert len(added) == 2
    assert net.chain.balance_of(net.deployment.host) == 200


def test_host_register_rejects_non_host_target(net):
    with pytest.raises(Revert) as ei:
        net.chain.call(
            net.deployment.account,
            "host_register",
            net.deployment.string_storage,
            sender=net.account_owner,
            value=100,
        )
    assert ei.value.reason == "Account.hostRegister: not a host"


def test_host_register_rejects_malformed_address(net):
    with pytest.raises(Revert) as ei:
        net.chain.call(net.deployment.account, "host_register", b"\x01\x02", sender=net.account_owner, value=100)
    assert ei.value.reason == "Account.hostRegister: invalid address"


def test_host_linked_hook_rejects_direct_callers(net):
    with pytest.raises(NotAuthorized) as ei:
        net.chain.call(net.deployment.account, "host_linked", net.deployment.host, sender=net.account_owner)
    assert ei.value.reason == "Account.hostLinked: message sender not a linked host"


# ------------------------------------------------------------------- removal


def test_host_remove_allowed_by_owner(net):
    net.register()
    net.chain.call(net.deployment.account, "host_remove", net.deployment.host, sender=net.account_owner)
    assert not net.account_registered().has(net.deployment.host)
    assert net.account_removed().has(net.deployment.host)


def test_host_remove_is_unilateral(net):
    net.register()
    net.chain.call(net.deployment.account, "host_remove", net.deployment.host, sender=net.account_owner)
    assert net.host_registered().has(net.deployment.account)
    assert link_status(net.chain, net.deployment.account, net.deployment.host) == HOST_ONLY


def test_host_remove_disallowed_from_non_owner(net):
    net.register()
    with pytest.raises(NotOwner) as ei:
        net.chain.call(net.deployment.account, "host_remove", net.deployment.host, sender=net.stranger)
    assert ei.value.reason == "Account.hostRemove: message sender not an owner"
    assert net.account.is_linked(net.deployment.host)


def test_host_remove_requires_registration(net):
    with pytest.raises(NotRegistered) as ei:
        net.chain.call(net.deployment.account, "host_remove", net.deployment.host, sender=net.account_owner)
    assert ei.value.reason == "Account.hostRemove: host not registered"
    assert not net.account_removed().has(net.deployment.host)


def test_reregister_after_removal_clears_removed_mark(net):
    net.register()
    net.chain.call(net.deployment.account, "host_remove", net.deployment.host, sender=net.account_owner)
    net.register()
    assert net.account_registered().has(net.deployment.host)
    assert not net.account_removed().has(net.deployment.host)
    assert not net.account_registered().was_removed(net.deployment.host)


def test_reregister_keeps_history_when_configured(devnet_factory, make_config):
    net = devnet_factory(make_config(clear_removed_on_add=False))
    net.register()
    net.chain.call(net.deployment.account, "host_remove", net.deployment.host, sender=net.account_owner)
    net.register()
    assert net.account_registered().has(net.deployment.host)
    assert net.account_removed().has(net.deployment.host)
    assert net.account_registered().was_removed(net.deployment.host)


# ---------------------------------------------------------------- data store


def test_data_remove_allowed_by_owner(net):
    data = net.account.data()
    net.chain.call(data, "set", ACCOUNT_DATA_KEY, ACCOUNT_DATA_VALUE, sender=net.account_owner)
    assert net.account_data().get(ACCOUNT_DATA_KEY) == ACCOUNT_DATA_VALUE

    # a dry run reports the value without removing it
    assert net.chain.simulate(data, "remove", ACCOUNT_DATA_KEY, sender=net.account_owner) == ACCOUNT_DATA_VALUE
    assert net.account_data().get(ACCOUNT_DATA_KEY) == ACCOUNT_DATA_VALUE

    assert net.chain.call(data, "remove", ACCOUNT_DATA_KEY, sender=net.account_owner) == ACCOUNT_DATA_VALUE
    assert net.account_data().get(ACCOUNT_DATA_KEY) == ""
    assert net.chain.call(data, "remove", ACCOUNT_DATA_KEY, sender=net.account_owner) == ""


def test_data_set_disallowed_from_non_owner(net):
    with pytest.raises(NotOwner) as ei:
        net.chain.call(net.account.data(), "set", ACCOUNT_DATA_KEY, ACCOUNT_DATA_VALUE, sender=net.stranger)
    assert ei.value.reason == "StringStorage.set: message sender not an owner"


def test_stores_are_owned_by_the_account(net):
    for store in (net.account.data(), net.account.registered(), net.account.removed()):
        assert net.chain.at(store).owner() == net.deployment.account


@pytest.mark.parametrize("store", ["registered", "removed"])
def test_owner_cannot_write_host_sets_directly(net, store):
    address = getattr(net.account, store)()
    with pytest.raises(NotOwner) as ei:
        net.chain.call(address, "add", net.deployment.host, sender=net.account_owner)
    assert ei.value.reason == "AddressStorage.add: message sender not an owner"
    assert link_status(net.chain, net.deployment.account, net.deployment.host) == UNLINKED
    assert net.chain.balance_of(net.deployment.host) == 0


def test_owner_cannot_unlink_without_audit_trail(net):
    net.register()
    with pytest.raises(NotOwner) as ei:
        net.chain.call(net.account.registered(), "remove", net.deployment.host, sender=net.account_owner)
    assert ei.value.reason == "AddressStorage.remove: message sender not an owner"
    assert net.account.is_linked(net.deployment.host)

    net.chain.call(net.deployment.account, "host_remove", net.deployment.host, sender=net.account_owner)
    assert net.account_removed().has(net.deployment.host)
