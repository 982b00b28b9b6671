"""
Chain runtime tests
- deterministic contract addresses and nonces
- ABI enforcement (exported / payable methods) and payment ordering
- call atomicity, including nested calls and caught reverts
- snapshots, diffs and state export/import
"""

from __future__ import annotations

import pytest

from hostreg.contracts import AddressStorage, Host, StringStorage
from hostreg.contracts.links import LINKED, link_status
from hostreg.errors import (
    InsufficientBalance,
    InvalidAccess,
    NotAuthorized,
    NotOwner,
    Revert,
    StateConflict,
    UnknownContract,
)
from hostreg.runtime.chain import MAX_CALL_DEPTH, Chain, iter_events
from hostreg.runtime.context import Msg
from hostreg.runtime.contract import Contract, external, view
from hostreg.tools.fixtures import det_address


# --------------------------------------------------------------------------- #
# helper contracts
# --------------------------------------------------------------------------- #


class Relay(Contract):
    kind = "TestRelay"

    @external(payable=True)
    def forward(self, msg, host, account):
        self.storage.set(b"touched", b"\x01")
        self._emit(b"Touched", {"by": msg.sender})
        self._accept_payment(msg)
        self._call(host, "account_register", account, value=msg.value)

    @external()
    def forward_catching(self, msg, target):
        self.storage.set(b"touched", b"\x01")
        try:
            self._call(target, "write_then_fail")
        except Revert:
            self.storage.set(b"caught", b"\x01")
        return True

    @external(payable=True)
    def keep(self, msg):
        self.storage.set(b"touched", b"\x01")

    @external()
    def recurse(self, msg):
        self._call(self.address, "recurse")

    @view
    def flags(self):
        return self.storage.has(b"touched"), self.storage.has(b"caught")


class Scribbler(Contract):
    kind = "TestScribbler"

    @external()
    def write_then_fail(self, msg):
        self.storage.set(b"k", b"\x01")
        self._emit(b"Scribbled", {})
        raise Revert("TestScribbler: boom")

    @view
    def wrote(self):
        return self.storage.has(b"k")


# --------------------------------------------------------------------------- #
# addresses
# --------------------------------------------------------------------------- #


def test_deploy_address_is_deterministic(devnet_factory):
    a, b = devnet_factory(), devnet_factory()
    assert a.deployment == b.deployment
    assert a.account.registered() == b.account.registered()


def test_deploy_address_follows_deployer_nonce(chain, accounts):
    deployer = accounts[0]
    expected = chain.contract_address(deployer, 0)
    assert chain.deploy(StringStorage, deployer, sender=deployer) == expected
    assert chain.nonce_of(deployer) == 1
    assert chain.deploy(StringStorage, deployer, sender=deployer) == chain.contract_address(deployer, 1)
    assert len(expected) == chain.config.address_len


def test_child_stores_are_created_by_the_entity(chain, accounts):
    host = chain.deploy(Host, accounts[2], 5, sender=accounts[0])
    handle = chain.at(host, kind="Host")
    assert handle.registered() == chain.contract_address(host, 0)
    assert handle.removed() == chain.contract_address(host, 1)
    assert chain.nonce_of(host) == 2


def test_deploy_keeps_funds_sent_ahead(chain, accounts):
    deployer = accounts[0]
    target = chain.contract_address(deployer, 0)
    chain.fund(target, 7)
    assert chain.deploy(StringStorage, deployer, sender=deployer) == target
    assert chain.balance_of(target) == 7


def test_deploy_onto_contract_conflicts(chain, accounts):
    deployer = accounts[0]
    first = chain.deploy(StringStorage, deployer, sender=deployer)
    with pytest.raises(StateConflict):
        chain.journal.create_wallet(first)


def test_failed_deploy_leaves_no_trace(chain, accounts):
    deployer = accounts[0]
    with pytest.raises(Revert) as ei:
        chain.deploy(Host, accounts[2], -1, sender=deployer)
    assert ei.value.reason == "Host.init: fee must be a non-negative integer"
    assert chain.nonce_of(deployer) == 0
    assert chain.contracts() == {}


def test_deploy_rejects_non_contract_classes(chain, accounts):
    with pytest.raises(TypeError):
        chain.deploy(dict, sender=accounts[0])


# --------------------------------------------------------------------------- #
# lookup / ABI
# --------------------------------------------------------------------------- #


def test_contracts_lists_every_deployment(net):
    kinds = sorted(net.chain.contracts().values())
    assert kinds == ["Account", "AddressStorage", "AddressStorage", "AddressStorage", "AddressStorage",
                     "Host", "StringStorage", "StringStorage"]
    assert net.chain.kind_of(net.stranger) is None


def test_at_checks_kind(net):
    with pytest.raises(UnknownContract):
        net.chain.at(net.deployment.account, kind="Host")
    with pytest.raises(UnknownContract):
        net.chain.at(net.stranger)


def test_abi_lists_exported_methods():
    abi = Host.abi()
    assert abi["account_register"] == "payable"
    assert abi["account_remove"] == "external"
    assert abi["change_owner"] == "external"
    assert abi["fee"] == "view"
    assert "init" not in abi
    assert "_authorized" not in abi
    assert AddressStorage.abi()["add"] == "external"


def test_call_to_unknown_contract(net):
    with pytest.raises(UnknownContract):
        net.chain.call(net.stranger, "owner", sender=net.deployer)


@pytest.mark.parametrize("method", ["init", "_link", "no_such_method"])
def test_only_exported_methods_are_callable(net, method):
    with pytest.raises(InvalidAccess) as ei:
        net.chain.call(net.deployment.account, method, net.deployment.host, sender=net.account_owner)
    assert ei.value.code == "INVALID_ACCESS"


def test_value_rejected_by_non_payable_method(net):
    before = net.chain.balance_of(net.account_owner)
    with pytest.raises(InvalidAccess):
        net.chain.call(net.deployment.account, "change_owner", net.stranger, sender=net.account_owner, value=5)
    assert net.chain.balance_of(net.account_owner) == before
    assert net.account.owner() == net.account_owner


def test_guards_run_before_the_payment_moves(net):
    # the stranger holds 10**18, so the payment alone would fail
    with pytest.raises(NotOwner) as ei:
        net.chain.call(
            net.deployment.account, "host_register", net.deployment.host, sender=net.stranger, value=10**19
        )
    assert ei.value.reason == "Account.hostRegister: message sender not an owner"

    with pytest.raises(NotAuthorized):
        net.chain.call(
            net.deployment.host, "account_register", net.deployment.account, sender=net.host_owner, value=10**19
        )


def test_payment_beyond_balance(net):
    before = net.chain.balance_of(net.account_owner)
    with pytest.raises(InsufficientBalance) as ei:
        net.chain.call(
            net.deployment.account, "host_register", net.deployment.host, sender=net.account_owner, value=before + 1
        )
    assert ei.value.data == {"balance": before, "amount": before + 1}
    assert not net.host.is_linked(net.deployment.account)
    assert net.chain.balance_of(net.account_owner) == before


def test_unaccepted_payment_moves_when_the_method_returns(chain, accounts):
    relay = chain.deploy(Relay, sender=accounts[0])
    before = chain.balance_of(accounts[0])
    chain.call(relay, "keep", sender=accounts[0], value=7)
    assert chain.balance_of(relay) == 7
    assert chain.balance_of(accounts[0]) == before - 7


def test_settle_needs_a_running_call(chain, accounts):
    relay = chain.deploy(Relay, sender=accounts[0])
    with pytest.raises(InvalidAccess):
        chain.settle_payment(Msg(sender=accounts[0], value=1, to=relay))


def test_views_are_callable_through_the_chain(net):
    assert net.chain.call(net.deployment.host, "fee", sender=net.stranger) == 100


# --------------------------------------------------------------------------- #
# atomicity
# --------------------------------------------------------------------------- #


def test_nested_failure_reverts_the_whole_call(net):
    relay = net.chain.deploy(Relay, sender=net.deployer)
    before = net.chain.balance_of(net.stranger)
    mark = net.chain.events.mark()
    with pytest.raises(NotAuthorized):
        net.chain.call(relay, "forward", net.deployment.host, net.deployment.account, sender=net.stranger, value=100)
    assert net.chain.at(relay).flags() == (False, False)
    assert net.chain.events.since(mark) == []
    assert net.chain.balance_of(net.stranger) == before
    assert net.chain.balance_of(relay) == 0
    assert net.chain.balance_of(net.deployment.host) == 0


def test_caught_nested_revert_keeps_caller_writes(chain, accounts):
    relay = chain.deploy(Relay, sender=accounts[0])
    scribbler = chain.deploy(Scribbler, sender=accounts[0])
    mark = chain.events.mark()
    assert chain.call(relay, "forward_catching", scribbler, sender=accounts[0]) is True
    assert chain.at(relay).flags() == (True, True)
    assert chain.at(scribbler).wrote() is False
    assert [e.name for e in chain.events.since(mark)] == []


def test_call_depth_is_bounded(chain, accounts):
    relay = chain.deploy(Relay, sender=accounts[0])
    with pytest.raises(InvalidAccess) as ei:
        chain.call(relay, "recurse", sender=accounts[0])
    assert ei.value.message == "call depth exceeded"
    assert chain.journal.depth() == 1
    assert MAX_CALL_DEPTH == 64


def test_simulate_discards_effects(net):
    mark = net.chain.events.mark()
    net.chain.simulate(
        net.deployment.account, "host_register", net.deployment.host, sender=net.account_owner, value=100
    )
    assert net.chain.events.since(mark) == []
    assert link_status(net.chain, net.deployment.account, net.deployment.host) != LINKED
    assert net.chain.balance_of(net.deployment.host) == 0


# --------------------------------------------------------------------------- #
# snapshots and persistence
# --------------------------------------------------------------------------- #


def test_snapshot_revert_restores_state_and_events(net):
    sid = net.chain.snapshot()
    n_events = len(net.chain.events)
    net.register()
    inner = net.chain.snapshot()
    net.chain.call(net.deployment.host, "change_fee", 7, sender=net.host_owner)

    net.chain.revert(sid)
    assert len(net.chain.events) == n_events
    assert net.host.fee() == 100
    assert not net.account.is_linked(net.deployment.host)
    # later snapshots are consumed by reverting an earlier one
    with pytest.raises(ValueError):
        net.chain.revert(inner)


def test_diff_since_reports_touched_state(net):
    sid = net.chain.snapshot()
    net.register()
    diff = net.chain.diff_since(sid)
    assert net.deployment.host in diff.wallets_upsert
    assert diff.wallets_upsert[net.deployment.host].balance == 100
    assert net.account.registered() in diff.storage_writes
    assert net.host.registered() in diff.storage_writes
    assert not diff.is_empty()
    net.chain.revert(sid)


def test_export_and_reload(net):
    net.register()
    net.chain.call(net.account.data(), "set", "name", "Jain", sender=net.account_owner)
    state = net.chain.export_state()

    restored = Chain.from_state(state, net.chain.config)
    assert restored.export_state() == state
    assert link_status(restored, net.deployment.account, net.deployment.host) == LINKED
    assert restored.at(restored.at(net.deployment.account).data()).get("name") == "Jain"
    assert iter_events(restored) == iter_events(net.chain)
    assert restored.nonce_of(net.deployer) == net.chain.nonce_of(net.deployer)


def test_reload_rejects_other_address_width(net, make_config):
    state = net.chain.export_state()
    with pytest.raises(ValueError):
        Chain.from_state(state, make_config(address_len=32))


def test_fund_and_balance(chain):
    addr = det_address("someone")
    assert chain.fund(addr, 10) == 10
    chain.set_balance(addr, 3)
    assert chain.get_balance(addr) == 3
    assert chain.balance_of(det_address("nobody")) == 0
