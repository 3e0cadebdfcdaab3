"""
Airtable record store.

WHAT: Bid/deal/seller store backed by the Airtable REST API
WHY: Orders, sellers and offers live in an Airtable base operated by hand
HOW: Synchronous httpx client with bearer auth, offset pagination, formula lookups
"""

from typing import Any, Iterator
from urllib.parse import quote

import httpx

from .types import (
    BidRecord,
    DealRecord,
    NewBid,
    SellerRecord,
    StoreStatus,
    StoreResponseError,
    StoreUnavailableError,
    link_ids,
    links_include,
    tax_type_label,
)
from ..core.config import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Orders table
ORDER_FIELD_SELLER_MSG_IDS = "Seller Offer Message ID"
ORDER_FIELD_BUTTONS_DISABLED = "Seller Offer Buttons Disabled"

# Seller offers table
OFFER_FIELD_PRICE = "Seller Offer"
OFFER_FIELD_VAT_TYPE = "Offer VAT Type"
OFFER_FIELD_NORMALIZED = "Offer Cost (Normalized)"
OFFER_FIELD_DATE = "Offer Date"
OFFER_FIELD_SELLER = "Seller ID"
OFFER_FIELD_SELLER_DISCORD = "Seller Discord ID"
OFFER_FIELD_LINKED_ORDERS = "Linked Orders"

# Sellers table
SELLER_FIELD_CODE = "Seller ID"
SELLER_FIELD_DISCORD = "Seller Discord ID"


def _formula_string(value: str) -> str:
    """Quote a value for use inside an Airtable formula."""
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


class AirtableStore:
    """Airtable-backed implementation of OfferStore."""

    def __init__(
        self,
        api_key: str | None = None,
        base_id: str | None = None,
        *,
        api_url: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ):
        self.base_id = base_id or settings.AIRTABLE_BASE_ID
        self.api_url = (api_url or settings.AIRTABLE_API_URL).rstrip("/")
        self.offers_table = settings.AIRTABLE_SELLER_OFFERS_TABLE
        self.sellers_table = settings.AIRTABLE_SELLERS_TABLE
        self.orders_table = settings.AIRTABLE_ORDERS_TABLE
        self.fallback_field = settings.AIRTABLE_FALLBACK_CEILING_FIELD

        self.client = client or httpx.Client(
            timeout=httpx.Timeout(timeout or settings.STORE_TIMEOUT),
            headers={"Authorization": f"Bearer {api_key or settings.AIRTABLE_API_KEY}"},
        )
        logger.info(f"Airtable store initialized (base: {self.base_id})")

    def _table_url(self, table: str, record_id: str | None = None) -> str:
        url = f"{self.api_url}/{self.base_id}/{quote(table, safe='')}"
        if record_id:
            url += f"/{quote(record_id, safe='')}"
        return url

    def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict | None = None,
        json: dict | None = None,
        allow_missing: bool = False,
    ) -> dict | None:
        """
        Send one request and decode the JSON body.

        Raises:
            StoreUnavailableError: Timeout, connection failure, 429 or 5xx
            StoreResponseError: Other HTTP errors or an undecodable body
        """
        try:
            response = self.client.request(method, url, params=params, json=json)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            logger.warning(f"Airtable {method} timed out: {url}")
            raise StoreUnavailableError("Airtable request timed out") from e
        except httpx.HTTPStatusError as e:
            code = e.response.status_code
            if code == 404 and allow_missing:
                return None
            if code == 429 or code >= 500:
                logger.error(f"Airtable unavailable ({code}) for {method} {url}")
                raise StoreUnavailableError(f"Airtable returned {code}") from e
            logger.error(f"Airtable rejected {method} {url}: {code} {e.response.text[:200]}")
            raise StoreResponseError(f"HTTP {code}: {e.response.text[:200]}") from e
        except httpx.TransportError as e:
            logger.warning(f"Airtable not reachable: {e}")
            raise StoreUnavailableError("Airtable is not reachable") from e
        except ValueError as e:
            raise StoreResponseError(f"Invalid Airtable response: {e}") from e

    def _iter_records(self, table: str, params: dict | None = None) -> Iterator[dict]:
        """Yield every record of a table, following pagination offsets."""
        query = dict(params or {})
        while True:
            data = self._request("GET", self._table_url(table), params=query) or {}
            records = data.get("records")
            if not isinstance(records, list):
                raise StoreResponseError("Airtable list response without records")
            yield from records
            offset = data.get("offset")
            if not offset:
                return
            query["offset"] = offset

    def _first_record(self, table: str, formula: str) -> dict | None:
        params = {"filterByFormula": formula, "maxRecords": 1}
        data = self._request("GET", self._table_url(table), params=params) or {}
        records = data.get("records") or []
        return records[0] if records else None

    @staticmethod
    def _fields(record: dict) -> dict[str, Any]:
        fields = record.get("fields")
        return fields if isinstance(fields, dict) else {}

    def _deal_from_record(self, record: dict) -> DealRecord:
        fields = self._fields(record)
        raw_ids = fields.get(ORDER_FIELD_SELLER_MSG_IDS) or ""
        message_ids = [mid.strip() for mid in str(raw_ids).split(",") if mid.strip()]
        return DealRecord(
            deal_id=record["id"],
            fallback_ceiling=fields.get(self.fallback_field),
            message_ids=message_ids,
            buttons_disabled=bool(fields.get(ORDER_FIELD_BUTTONS_DISABLED, False)),
        )

    def ping(self) -> StoreStatus:
        try:
            self._request("GET", self._table_url(self.orders_table), params={"maxRecords": 1})
            return StoreStatus(available=True, backend="airtable")
        except (StoreUnavailableError, StoreResponseError) as e:
            return StoreStatus(available=False, backend="airtable", error=str(e))

    def find_bids_by_deal(self, deal_id: str) -> list[BidRecord]:
        # Linked-record formulas match on display names, not ids, so scan.
        bids = []
        for record in self._iter_records(self.offers_table):
            fields = self._fields(record)
            links = fields.get(OFFER_FIELD_LINKED_ORDERS)
            if not links_include(links, deal_id):
                continue
            bids.append(BidRecord(
                record_id=record.get("id", ""),
                price=fields.get(OFFER_FIELD_PRICE),
                tax_type=tax_type_label(fields.get(OFFER_FIELD_VAT_TYPE)),
                linked_deal_ids=link_ids(links),
                normalized=fields.get(OFFER_FIELD_NORMALIZED),
            ))
        logger.debug(f"Found {len(bids)} offers linked to {deal_id}")
        return bids

    def find_deal(self, deal_id: str) -> DealRecord | None:
        record = self._request(
            "GET", self._table_url(self.orders_table, deal_id), allow_missing=True
        )
        return self._deal_from_record(record) if record else None

    def find_deal_by_message(self, message_id: str) -> DealRecord | None:
        formula = f"SEARCH({_formula_string(message_id)}, {{{ORDER_FIELD_SELLER_MSG_IDS}}})"
        record = self._first_record(self.orders_table, formula)
        return self._deal_from_record(record) if record else None

    def find_seller_by_code(self, seller_code: str) -> SellerRecord | None:
        formula = f"{{{SELLER_FIELD_CODE}}} = {_formula_string(seller_code)}"
        record = self._first_record(self.sellers_table, formula)
        if not record:
            return None
        fields = self._fields(record)
        return SellerRecord(
            record_id=record["id"],
            seller_code=str(fields.get(SELLER_FIELD_CODE, seller_code)),
            discord_user_id=fields.get(SELLER_FIELD_DISCORD),
        )

    def create_bid(self, bid: NewBid) -> BidRecord:
        fields: dict[str, Any] = {
            OFFER_FIELD_PRICE: bid.price,
            OFFER_FIELD_VAT_TYPE: bid.tax_type.value,
            OFFER_FIELD_NORMALIZED: bid.normalized,
            OFFER_FIELD_DATE: bid.offer_date.isoformat(),
            OFFER_FIELD_SELLER: [bid.seller_record_id],
        }
        if bid.seller_discord_id:
            fields[OFFER_FIELD_SELLER_DISCORD] = bid.seller_discord_id
        if bid.deal_id:
            fields[OFFER_FIELD_LINKED_ORDERS] = [bid.deal_id]

        record = self._request("POST", self._table_url(self.offers_table), json={"fields": fields})
        if not record or "id" not in record:
            raise StoreResponseError("Airtable create response without record id")

        logger.info(f"Created offer {record['id']} for deal {bid.deal_id}")
        return BidRecord(
            record_id=record["id"],
            price=bid.price,
            tax_type=bid.tax_type.value,
            linked_deal_ids=[bid.deal_id] if bid.deal_id else [],
            normalized=bid.normalized,
        )

    def update_deal_messaging(
        self,
        deal_id: str,
        *,
        buttons_disabled: bool,
        message_ids: list[str] | None = None
    ) -> None:
        fields: dict[str, Any] = {ORDER_FIELD_BUTTONS_DISABLED: buttons_disabled}
        if message_ids is not None:
            fields[ORDER_FIELD_SELLER_MSG_IDS] = ",".join(message_ids)
        self._request("PATCH", self._table_url(self.orders_table, deal_id), json={"fields": fields})

    def close(self):
        """Close the HTTP client."""
        self.client.close()
