import eth_abi.abi
import pytest
from eth_utils.crypto import keccak
from web3.exceptions import ContractLogicError

from moneymarket.chain import Web3ChainReader
from moneymarket.checksum_cache import get_checksum_address
from moneymarket.exceptions import ContractCallError, ContractCallReverted

MARKET_ADDRESS = get_checksum_address("0x8126855f31b6a52ea5942f4f3bf8bf7c8c84f12d")
TOKEN_ADDRESS = get_checksum_address("0xebc85c04124e55a682ef35d9f1c458ab1f5273b2")
ACCOUNT_ADDRESS = get_checksum_address("0xa69babef1ca67a37ffaf7a485dfff3382056e78c")


def _selector(function_prototype: str) -> bytes:
    return keccak(text=function_prototype)[:4]


class FakeEth:
    """
    Answers `eth_call` requests from a table of responses keyed by function selector.
    """

    def __init__(self) -> None:
        self.responses: dict[bytes, bytes | Exception] = {}
        self.requests: list = []

    def call(self, transaction, block_identifier=None):
        self.requests.append((transaction, block_identifier))
        response = self.responses[bytes(transaction["data"][:4])]
        if isinstance(response, Exception):
            raise response
        return response


class FakeWeb3:
    def __init__(self) -> None:
        self.eth = FakeEth()


@pytest.fixture
def w3() -> FakeWeb3:
    return FakeWeb3()


@pytest.fixture
def chain_reader(w3: FakeWeb3) -> Web3ChainReader:
    return Web3ChainReader(w3)  # type: ignore[arg-type]


def test_uint_read_is_pinned_to_block(w3: FakeWeb3, chain_reader: Web3ChainReader):
    w3.eth.responses[_selector("exchangeRateStored()")] = eth_abi.abi.encode(
        ["uint256"], [2 * 10**26]
    )

    assert chain_reader.exchange_rate_stored(MARKET_ADDRESS, 123) == 2 * 10**26
    ((transaction, block_identifier),) = w3.eth.requests
    assert transaction["to"] == MARKET_ADDRESS
    assert block_identifier == 123


def test_address_reads_are_checksummed(w3: FakeWeb3, chain_reader: Web3ChainReader):
    w3.eth.responses[_selector("underlying()")] = eth_abi.abi.encode(
        ["address"], [TOKEN_ADDRESS.lower()]
    )
    w3.eth.responses[_selector("getAllMarkets()")] = eth_abi.abi.encode(
        ["address[]"], [[MARKET_ADDRESS.lower(), TOKEN_ADDRESS.lower()]]
    )

    assert chain_reader.underlying(MARKET_ADDRESS, 100) == TOKEN_ADDRESS
    assert chain_reader.all_markets(MARKET_ADDRESS, 100) == [MARKET_ADDRESS, TOKEN_ADDRESS]


def test_balance_of_encodes_account(w3: FakeWeb3, chain_reader: Web3ChainReader):
    w3.eth.responses[_selector("balanceOf(address)")] = eth_abi.abi.encode(
        ["uint256"], [5 * 10**8]
    )

    assert chain_reader.balance_of(MARKET_ADDRESS, ACCOUNT_ADDRESS, 99) == 5 * 10**8
    ((transaction, block_identifier),) = w3.eth.requests
    assert transaction["data"] == _selector("balanceOf(address)") + eth_abi.abi.encode(
        ["address"], [ACCOUNT_ADDRESS]
    )
    assert block_identifier == 99


def test_underlying_price_encodes_market(w3: FakeWeb3, chain_reader: Web3ChainReader):
    w3.eth.responses[_selector("getUnderlyingPrice(address)")] = eth_abi.abi.encode(
        ["uint256"], [10**30]
    )

    assert chain_reader.underlying_price(TOKEN_ADDRESS, MARKET_ADDRESS, 100) == 10**30


def test_string_read(w3: FakeWeb3, chain_reader: Web3ChainReader):
    w3.eth.responses[_selector("name()")] = eth_abi.abi.encode(["string"], ["USD Coin"])

    assert chain_reader.name(TOKEN_ADDRESS, 100) == "USD Coin"


def test_bytes32_string_read(w3: FakeWeb3, chain_reader: Web3ChainReader):
    w3.eth.responses[_selector("symbol()")] = eth_abi.abi.encode(
        ["bytes32"], [b"MKR".ljust(32, b"\x00")]
    )

    assert chain_reader.symbol(TOKEN_ADDRESS, 100) == "MKR"


def test_reverted_read(w3: FakeWeb3, chain_reader: Web3ChainReader):
    w3.eth.responses[_selector("borrowIndex()")] = ContractLogicError("execution reverted")
    w3.eth.responses[_selector("symbol()")] = ContractLogicError("execution reverted")

    with pytest.raises(ContractCallReverted) as exc_info:
        chain_reader.borrow_index(MARKET_ADDRESS, 100)
    assert exc_info.value.function_prototype == "borrowIndex()"
    assert exc_info.value.address == MARKET_ADDRESS

    with pytest.raises(ContractCallReverted):
        chain_reader.symbol(MARKET_ADDRESS, 100)


def test_undecodable_read(w3: FakeWeb3, chain_reader: Web3ChainReader):
    w3.eth.responses[_selector("getCash()")] = b""

    with pytest.raises(ContractCallError) as exc_info:
        chain_reader.cash(MARKET_ADDRESS, 100)
    assert not isinstance(exc_info.value, ContractCallReverted)
