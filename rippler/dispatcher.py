from __future__ import annotations

from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union

from rich.console import Console

from shared.log import get_logger
from shared.message import ProtocolError, Request, RipplerError, require

from .config import ClientConfig
from .contacts import AddressBook
from .models import Account, Ledger, Line, format_ledger, format_transaction
from .money import parse_money
from .ws_client import Document, LedgerClient, MessageHandler

logger = get_logger(__name__)

Result = Union[Document, List[str], None]
# Type alias for built-in command handlers
CommandHandler = Callable[["Dispatcher", Dict[str, Any]], Awaitable[Result]]
Emit = Callable[[Any], None]

# Commands whose `account` falls back to the configured default account
ACCOUNT_SCOPED = frozenset({
    "account_info",
    "account_lines",
    "account_tx",
    "account_offers",
    "account_currencies",
    "account_objects",
    "account_channels",
    "gateway_balances",
    "noripple_check",
    "balances",
    "history",
})

# Trust lines at or below this absolute balance are not worth showing
BALANCE_THRESHOLD = Decimal("0.00001")

HISTORY_DEFAULTS: Dict[str, Any] = {
    "ledger_min": 0,
    "ledger_max": -1,
    "resume": 0,
    "sort_asc": 1,
}

SUBSCRIBE_DEFAULTS: Dict[str, Any] = {
    "id": 0,
    "streams": ["ledger"],
}


def _console_emit() -> Emit:
    console = Console()
    return lambda item: console.print(item, markup=False)


class Dispatcher:
    """
    Turns a command name and its params into ledger requests.

    Registered built-ins pre/post-process; everything else is forwarded
    verbatim as a single-shot request.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        client: Optional[LedgerClient] = None,
        contacts: Optional[AddressBook] = None,
        emit: Optional[Emit] = None,
    ) -> None:
        self.config = config or ClientConfig()
        self.client = client or LedgerClient(self.config)
        self.contacts = contacts or AddressBook(self.config.contacts)
        self.emit = emit or _console_emit()

    async def process(self, command: str, raw_params: Mapping[str, Any]) -> Result:
        params: Dict[str, Any] = dict(raw_params)
        if "account" in params:
            params["account"] = self.contacts.resolve(params["account"])
        elif command in ACCOUNT_SCOPED:
            params["account"] = self.contacts.resolve(self.config.default_account)

        handler = BUILTIN_COMMANDS.get(command)
        if handler is None:
            logger.debug("Forwarding %s as a pass-through command", command)
            return await self.passthrough(command, params)
        logger.debug("Dispatching built-in %s", command)
        return await handler(self, params)

    async def passthrough(self, command: str, params: Mapping[str, Any]) -> Document:
        return await self.client.request(Request.build(command, params=params))

    ### These API commands need some pre/post-process wrappers

    async def book_offers(self, params: Dict[str, Any]) -> Document:
        """Convert taker_gets / taker_pays into {currency, issuer}"""
        for key in ("taker_gets", "taker_pays"):
            if key in params:
                try:
                    params[key] = parse_money(params[key], self.contacts).to_hash()
                except ValueError as e:
                    raise RipplerError(f"Bad {key}: {e}") from e
        return await self.client.request(Request.build("book_offers", params=params))

    async def subscribe(self, params: Dict[str, Any], handler: Optional[MessageHandler] = None) -> None:
        """Stream events until the remote closes, an error arrives, or the handler stops"""
        request = Request.build("subscribe", SUBSCRIBE_DEFAULTS, params)
        await self.client.run(request, handler or self.emit, streaming=True)

    ### User-defined commands that post-process replies

    async def monitor(self, params: Dict[str, Any]) -> None:
        """Subscribe and print events nicely formatted"""

        def render(message: Document) -> None:
            kind = message.get("type")
            if kind == "response":
                self.emit(f"{format_ledger(message.get('result') or {})} starting...")
            elif kind == "ledgerClosed":
                ledger = Ledger.from_message(message)
                if ledger.txn_count > 0:
                    self.emit(f"{ledger} active")
            elif kind == "transaction":
                self.emit(format_transaction(message))
            else:
                self.emit(message)

        await self.subscribe(params, render)

    async def balances(self, params: Dict[str, Any]) -> List[str]:
        """Non-trivial IOU balances plus the XRP balance, one line each"""
        reply = await self.client.request(Request.build("account_lines", params=params))
        lines = require(reply, "result", "lines")
        if not isinstance(lines, list):
            raise ProtocolError("Reply 'result.lines' is not a list")

        reply = await self.client.request(Request.build("account_info", params=params))
        account = Account.from_data(require(reply, "result", "account_data"))

        out = []
        for raw in lines:
            line = Line.from_dict(raw)
            if abs(line.balance) > BALANCE_THRESHOLD:
                out.append(str(line))
        out.append(f"XRP balance: {account.balance.normalize():f}")
        return out

    async def history(self, params: Dict[str, Any]) -> List[str]:
        """Account transactions, formatted, with a trailing count"""
        reply = await self.client.request(Request.build("account_tx", HISTORY_DEFAULTS, params))
        txs = require(reply, "result", "transactions")
        if not isinstance(txs, list):
            raise ProtocolError("Reply 'result.transactions' is not a list")
        out = [format_transaction(t) for t in txs]
        out.append(f"Total transactions: {len(txs)}")
        return out


# Built-in command registry; anything missing here is a pass-through
BUILTIN_COMMANDS: Dict[str, CommandHandler] = {
    "book_offers": Dispatcher.book_offers,
    "subscribe": Dispatcher.subscribe,
    "monitor": Dispatcher.monitor,
    "balances": Dispatcher.balances,
    "history": Dispatcher.history,
}
