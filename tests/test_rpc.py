import base64
from unittest import mock

import pytest
import requests

from block_priority.config import InspectorConfig
from block_priority.core.blocks import BlockTransaction, ConfirmedBlock
from block_priority.core.rpc import RpcClient
from block_priority.errors import BlockFetchError, ConfigError, MalformedBlockError, TransactionDecodeError

from conftest import account, make_transaction, rpc_block, rpc_entry


def fake_session(body=None, status=200, exc=None):
    session = mock.Mock(spec=requests.Session)
    if exc is not None:
        session.post.side_effect = exc
        return session
    response = mock.Mock()
    response.json.return_value = body
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} Server Error")
    session.post.return_value = response
    return session


def test_get_block_requests_full_binary_confirmed_block():
    tx = make_transaction(1, priority=3, writes=[account(1)])
    session = fake_session({"jsonrpc": "2.0", "id": 1, "result": rpc_block([rpc_entry(tx)])})
    config = InspectorConfig(rpc_url="http://node:8899", request_timeout=5)

    block = RpcClient(config, session=session).get_block(123)

    args, kwargs = session.post.call_args
    assert args == ("http://node:8899",)
    assert kwargs["timeout"] == 5
    payload = kwargs["json"]
    assert payload["method"] == "getBlock"
    assert payload["params"] == [123, {
        "encoding": "binary",
        "transactionDetails": "full",
        "rewards": False,
        "commitment": "confirmed",
        "maxSupportedTransactionVersion": 0,
    }]

    assert block.slot == 123
    assert block.parent_slot == 99
    assert block.transaction_count == 1
    assert block.transactions[0].decode() == tx
    assert block.transactions[0].meta.success


def test_transport_failure_is_a_fetch_error():
    session = fake_session(exc=requests.ConnectionError("connection refused"))
    with pytest.raises(BlockFetchError) as excinfo:
        RpcClient(session=session).get_block(7)
    assert excinfo.value.slot == 7
    assert str(excinfo.value).startswith("Failed to fetch block at slot 7:")


def test_http_error_is_a_fetch_error():
    session = fake_session({}, status=503)
    with pytest.raises(BlockFetchError):
        RpcClient(session=session).get_block(7)


def test_rpc_error_object_is_a_fetch_error():
    body = {"jsonrpc": "2.0", "id": 1,
            "error": {"code": -32007, "message": "Slot 7 was skipped"}}
    with pytest.raises(BlockFetchError, match="Slot 7 was skipped"):
        RpcClient(session=fake_session(body)).get_block(7)


def test_invalid_json_is_a_fetch_error():
    session = fake_session()
    session.post.return_value.json.side_effect = ValueError("Expecting value")
    with pytest.raises(BlockFetchError, match="invalid JSON"):
        RpcClient(session=session).get_block(7)


def test_null_result_is_a_fetch_error():
    with pytest.raises(BlockFetchError, match="not available"):
        RpcClient(session=fake_session({"jsonrpc": "2.0", "id": 1, "result": None})).get_block(7)


def test_client_closes_its_session():
    session = fake_session({})
    with RpcClient(session=session):
        pass
    session.close.assert_called_once()


def test_block_without_transaction_list():
    block = ConfirmedBlock.from_rpc(5, {"blockhash": "x"})
    assert block.transactions is None
    assert block.transaction_count == 0


def test_non_object_block_is_malformed():
    with pytest.raises(MalformedBlockError):
        ConfirmedBlock.from_rpc(5, ["not", "a", "block"])


def test_entry_without_meta_or_loaded_addresses():
    tx = make_transaction(1, writes=[account(1)])
    assert BlockTransaction.from_rpc(rpc_entry(tx, meta=False)).meta is None

    entry = rpc_entry(tx)
    del entry["meta"]["loadedAddresses"]
    assert BlockTransaction.from_rpc(entry).meta.loaded_addresses is None


def test_base64_encoded_transactions_decode():
    tx = make_transaction(1, writes=[account(1)])
    entry = BlockTransaction([base64.b64encode(tx.serialize()).decode(), "base64"])
    assert entry.decode() == tx


@pytest.mark.parametrize("encoded", ["0OIl", ["abc", "jsonParsed"], {"message": {}}, ["!!", "base64"]])
def test_undecodable_transactions(encoded):
    with pytest.raises(TransactionDecodeError):
        BlockTransaction(encoded).decode()


def test_config_from_env():
    config = InspectorConfig.from_env({"SOLANA_RPC_URL": "http://x", "SOLANA_RPC_TIMEOUT": "2.5"})
    assert config.rpc_url == "http://x"
    assert config.request_timeout == 2.5
    assert config.with_url(None) is config
    assert config.with_url("http://y").rpc_url == "http://y"


def test_config_rejects_bad_timeout():
    with pytest.raises(ConfigError, match="SOLANA_RPC_TIMEOUT"):
        InspectorConfig.from_env({"SOLANA_RPC_TIMEOUT": "soon"})
