"""
Host contract tests
- account registration is for the account side only (asymmetric auth)
- fee gate and fee changes
- account removal by the host owner, unilateral
"""

from __future__ import annotations

import pytest

from hostreg.contracts.links import ACCOUNT_ONLY, LINKED, UNLINKED, is_half_linked, link_status
from hostreg.errors import InsufficientFee, InvalidAccess, NotAuthorized, NotOwner, NotRegistered, Revert


def _register_from_owner(net, value=100):
    """Account owner registers directly on the Host (owner-driven path)."""
    net.chain.call(net.deployment.host, "account_register", net.deployment.account, sender=net.account_owner, value=value)


# -------------------------------------------------------------- registration


def test_account_register_disallowed_from_host_owner(net):
    before = net.chain.balance_of(net.host_owner)
    with pytest.raises(NotAuthorized) as ei:
        net.chain.call(
            net.deployment.host, "account_register", net.deployment.account, sender=net.host_owner, value=100
        )
    assert ei.value.reason == "Host.accountRegister: message sender not authorized"
    assert not net.host_registered().has(net.deployment.account)
    assert net.chain.balance_of(net.host_owner) == before


def test_account_register_disallowed_from_stranger(net):
    with pytest.raises(NotAuthorized):
        net.chain.call(net.deployment.host, "account_register", net.deployment.account, sender=net.stranger, value=100)


def test_account_register_rejects_non_account(net):
    # an EOA is not an Account, even when it is the caller itself
    with pytest.raises(NotAuthorized):
        net.chain.call(net.deployment.host, "account_register", net.stranger, sender=net.stranger, value=100)


def test_account_register_by_account_owner_links_both_sides(net):
    mark = net.chain.events.mark()
    _register_from_owner(net)
    assert net.host_registered().has(net.deployment.account)
    assert net.account_registered().has(net.deployment.host)
    assert link_status(net.chain, net.deployment.account, net.deployment.host) == LINKED
    names = [e.name for e in net.chain.events.since(mark)]
    assert b"HostLinked" in names
    assert names[-1] == b"AccountRegistered"


def test_account_register_insufficient_fee(net):
    with pytest.raises(InsufficientFee) as ei:
        _register_from_owner(net, value=1)
    assert ei.value.reason == "Host.accountRegister: insufficient fee"
    assert not net.host_registered().has(net.deployment.account)
    assert net.chain.balance_of(net.deployment.host) == 0


def test_account_register_rejects_malformed_address(net):
    with pytest.raises(Revert) as ei:
        net.chain.call(net.deployment.host, "account_register", b"", sender=net.account_owner, value=100)
    assert ei.value.reason == "Host.accountRegister: invalid address"


def test_zero_fee_host_accepts_free_registration(devnet_factory):
    net = devnet_factory(fee=0)
    assert net.host.fee() == 0
    net.register(value=0)
    assert link_status(net.chain, net.deployment.account, net.deployment.host) == LINKED


# ------------------------------------------------------------------- removal


def test_account_remove_allowed_by_host_owner(net):
    net.register()
    net.chain.call(net.deployment.host, "account_remove", net.deployment.account, sender=net.host_owner)
    assert not net.host_registered().has(net.deployment.account)
    assert net.host_removed().has(net.deployment.account)
    # the account side is untouched
    assert net.account_registered().has(net.deployment.host)
    assert link_status(net.chain, net.deployment.account, net.deployment.host) == ACCOUNT_ONLY
    assert is_half_linked(net.chain, net.deployment.account, net.deployment.host)


def test_account_remove_disallowed_from_non_owner(net):
    net.register()
    with pytest.raises(NotOwner) as ei:
        net.chain.call(net.deployment.host, "account_remove", net.deployment.account, sender=net.stranger)
    assert ei.value.reason == "Host.accountRemove: message sender not authorized"
    assert net.host_registered().has(net.deployment.account)


def test_account_remove_disallowed_from_account_owner(net):
    net.register()
    with pytest.raises(NotOwner):
        net.chain.call(net.deployment.host, "account_remove", net.deployment.account, sender=net.account_owner)


def test_account_remove_requires_registration(net):
    with pytest.raises(NotRegistered) as ei:
        net.chain.call(net.deployment.host, "account_remove", net.deployment.account, sender=net.host_owner)
    assert ei.value.reason == "Host.accountRemove: account not registered"


def test_both_sides_removed_is_unlinked(net):
    net.register()
    net.chain.call(net.deployment.host, "account_remove", net.deployment.account, sender=net.host_owner)
    net.chain.call(net.deployment.account, "host_remove", net.deployment.host, sender=net.account_owner)
    assert link_status(net.chain, net.deployment.account, net.deployment.host) == UNLINKED
    assert not is_half_linked(net.chain, net.deployment.account, net.deployment.host)


def test_reregister_after_host_side_removal(net):
    net.register()
    net.chain.call(net.deployment.host, "account_remove", net.deployment.account, sender=net.host_owner)
    net.register()
    assert net.host_registered().has(net.deployment.account)
    assert not net.host_removed().has(net.deployment.account)


def test_account_remove_is_not_payable(net):
    net.register()
    with pytest.raises(InvalidAccess):
        net.chain.call(net.deployment.host, "account_remove", net.deployment.account, sender=net.host_owner, value=1)


# ----------------------------------------------------------------------- fee


def test_change_fee_by_owner(net):
    mark = net.chain.events.mark()
    net.chain.call(net.deployment.host, "change_fee", 250, sender=net.host_owner)
    assert net.host.fee() == 250
    (ev,) = net.chain.events.since(mark)
    assert ev.name == b"FeeChanged"
    assert ev.args == {"previous": 100, "fee": 250}

    with pytest.raises(InsufficientFee):
        net.register(value=100)
    net.register(value=250)
    assert net.account.is_linked(net.deployment.host)


def test_change_fee_disallowed_from_non_owner(net):
    with pytest.raises(NotOwner) as ei:
        net.chain.call(net.deployment.host, "change_fee", 0, sender=net.account_owner)
    assert ei.value.reason == "Host.changeFee: message sender not an owner"
    assert net.host.fee() == 100


@pytest.mark.parametrize("bad", [-1, "100", True, 1.5])
def test_change_fee_rejects_invalid_values(net, bad):
    with pytest.raises(Revert) as ei:
        net.chain.call(net.deployment.host, "change_fee", bad, sender=net.host_owner)
    assert ei.value.reason == "Host.changeFee: fee must be a non-negative integer"
    assert net.host.fee() == 100


# ----------------------------------------------------------------- ownership


def test_host_change_owner(net):
    net.chain.call(net.deployment.host, "change_owner", net.stranger, sender=net.host_owner)
    assert net.host.owner() == net.stranger
    with pytest.raises(NotOwner) as ei:
        net.chain.call(net.deployment.host, "change_fee", 1, sender=net.host_owner)
    assert ei.value.reason == "Host.changeFee: message sender not an owner"


def test_host_change_owner_disallowed_from_non_owner(net):
    with pytest.raises(NotOwner) as ei:
        net.chain.call(net.deployment.host, "change_owner", net.stranger, sender=net.stranger)
    assert ei.value.reason == "Host.changeOwner: message sender not an owner"


def test_host_stores_are_owned_by_the_host(net):
    for store in (net.host.registered(), net.host.removed()):
        assert net.chain.at(store).owner() == net.deployment.host


@pytest.mark.parametrize("sender", ["host_owner", "account_owner"])
def test_owners_cannot_write_account_sets_directly(net, sender):
    with pytest.raises(NotOwner) as ei:
        net.chain.call(net.host.registered(), "add", net.deployment.account, sender=getattr(net, sender))
    assert ei.value.reason == "AddressStorage.add: message sender not an owner"
    assert not net.host.is_linked(net.deployment.account)
    assert net.chain.balance_of(net.deployment.host) == 0


def test_host_owner_cannot_unlink_without_audit_trail(net):
    net.register()
    with pytest.raises(NotOwner) as ei:
        net.chain.call(net.host.registered(), "remove", net.deployment.account, sender=net.host_owner)
    assert ei.value.reason == "AddressStorage.remove: message sender not an owner"
    with pytest.raises(NotOwner):
        net.chain.call(net.host.removed(), "add", net.deployment.account, sender=net.host_owner)
    assert link_status(net.chain, net.deployment.account, net.deployment.host) == LINKED
    assert not net.host_removed().has(net.deployment.account)
