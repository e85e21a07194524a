"""
Transaction ledger routes.

- /transaction/create - validate a draft and insert it
- /transaction/update - overwrite Amount and Status of an existing row
"""

from flask import Blueprint, request

from core.exceptions import PisoPrintError
from logging_config import get_logger
from routes.helpers import failure, failure_from, get_service


# Module logger
logger = get_logger(__name__)

transaction_bp = Blueprint("transaction", __name__)


@transaction_bp.route("/transaction/create", methods=["POST"])
def create():
    """Returns {success, id} or {success: false, message}."""
    draft = request.get_json(silent=True) or {}

    try:
        ledger = get_service("LEDGER_SERVICE")
        tx_id = ledger.create(draft)
        return {"success": True, "id": tx_id}

    except PisoPrintError as e:
        logger.warning(f"Transaction create rejected: {e}")
        return failure_from(e)
    except Exception as e:
        logger.error(f"transaction/create error: {e}", exc_info=True)
        return failure(str(e))


@transaction_bp.route("/transaction/update", methods=["POST"])
def update():
    """Returns {success} or {success: false, message}."""
    data = request.get_json(silent=True) or {}

    try:
        ledger = get_service("LEDGER_SERVICE")
        ledger.update(data.get("id"), data.get("Amount"), data.get("Status"))
        return {"success": True}

    except PisoPrintError as e:
        logger.warning(f"Transaction update rejected: {e}")
        return failure_from(e)
    except Exception as e:
        logger.error(f"transaction/update error: {e}", exc_info=True)
        return failure(str(e))
