from collections.abc import Sequence
from typing import Any

import eth_abi.abi
from eth_typing import ChecksumAddress
from eth_utils.crypto import keccak
from web3 import AsyncBaseProvider, AsyncWeb3
from web3.types import BlockIdentifier, TxParams


def function_argument_types(function_prototype: str) -> list[str]:
    """
    Get the ABI types of the arguments in a prototype, e.g. 'ticks(int24)' -> ['int24'] and
    'slot0()' -> [].
    """

    _, _, arguments = function_prototype.partition("(")
    arguments = arguments.removesuffix(")")
    return arguments.split(",") if arguments else []


def encode_function_calldata(
    function_prototype: str,
    function_arguments: Sequence[Any] | None = None,
) -> bytes:
    """
    Build the calldata for a call: the 4-byte selector of the prototype followed by the ABI-encoded
    arguments.
    """

    selector = keccak(text=function_prototype)[:4]
    return selector + eth_abi.abi.encode(
        types=function_argument_types(function_prototype),
        args=function_arguments if function_arguments is not None else (),
    )


async def call_function_async(
    w3: AsyncWeb3[AsyncBaseProvider],
    address: ChecksumAddress,
    function_prototype: str,
    function_arguments: Sequence[Any] | None,
    return_types: Sequence[str],
    block_identifier: BlockIdentifier | None = None,
) -> tuple[Any, ...]:
    """
    Call a view function at the given address with `eth_call` and decode its return values.
    """

    response = await w3.eth.call(
        transaction=TxParams(
            to=address,
            data=encode_function_calldata(function_prototype, function_arguments),
        ),
        block_identifier=block_identifier,
    )
    return eth_abi.abi.decode(types=return_types, data=response)
