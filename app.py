import logging

from flask import Flask, request, jsonify
from flask_cors import CORS

from costing import config
from costing.catalog import QUICK_ADD_ITEMS, CatalogClient, CatalogError
from costing.currency import BASE_CURRENCY, CONVERSION_RATES, CURRENCY_SYMBOLS
from costing.engine import FLOW_PRESETS, InvoiceCalculator, compute_breakdown
from costing.models import MATERIAL_CATEGORIES
from costing.parser import PayloadParser

# Configure logging
logging.basicConfig(level=getattr(logging, config.LOG_LEVEL, logging.INFO))
logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)

calculator = InvoiceCalculator()
parser = PayloadParser(
    default_currency=config.DEFAULT_CURRENCY,
    default_vat_rate=config.DEFAULT_VAT_RATE,
)


def error_response(message, status):
    return jsonify({"is_success": False, "error": message}), status


def parse_breakdown_request():
    """Parse the request body and compute its breakdown."""
    data = request.get_json(silent=True)
    if data is None:
        raise ValueError("Request body must be a JSON object")

    req = parser.parse_dict(data)
    options = calculator.resolve_options(req.flow, req.option_overrides)
    breakdown = compute_breakdown(
        req.items, req.charges, req.tax, req.currency, options
    )
    return req, breakdown


@app.route('/compute-breakdown', methods=['POST'])
def compute_breakdown_endpoint():
    """Compute the itemized breakdown for a set of line items."""
    try:
        req, breakdown = parse_breakdown_request()
        return jsonify({
            "is_success": True,
            "data": breakdown.to_dict(),
            "save_payload": calculator.to_save_payload(
                req.items, req.charges, breakdown
            ),
        }), 200
    except ValueError as e:
        # Includes InvalidCurrencyError and UnknownFlowError
        logger.warning(f"Rejected breakdown request: {e}")
        return error_response(str(e), 400)
    except Exception as e:
        logger.exception("Breakdown computation failed")
        return error_response(str(e), 500)


@app.route('/summary', methods=['POST'])
def summary_endpoint():
    """Render the plain-text cost summary for a set of line items."""
    try:
        req, breakdown = parse_breakdown_request()
        return jsonify({
            "is_success": True,
            "summary": calculator.get_formatted_summary(breakdown, req.items),
        }), 200
    except ValueError as e:
        logger.warning(f"Rejected summary request: {e}")
        return error_response(str(e), 400)
    except Exception as e:
        logger.exception("Summary rendering failed")
        return error_response(str(e), 500)


@app.route('/catalog/line-items', methods=['GET'])
def catalog_line_items():
    """Seed line items from the inventory catalog."""
    client = CatalogClient(
        config.API_BASE_URL, config.API_TOKEN, config.REQUEST_TIMEOUT
    )
    try:
        page = int(request.args.get('page', 1))
        limit = int(request.args.get('limit', 20))
    except ValueError:
        return error_response("page and limit must be integers", 400)

    try:
        items = client.search_line_items(
            search=request.args.get('search', ''),
            business_id=request.args.get('businessId'),
            page=page,
            limit=limit,
        )
    except CatalogError as e:
        return error_response(str(e), 502)

    return jsonify({
        "is_success": True,
        "items": [
            {
                "id": item.id,
                "label": item.label,
                "unit_cost": str(item.unit_cost),
                "quantity": item.quantity,
                "category": item.category,
            }
            for item in items
        ],
    }), 200


@app.route('/currencies', methods=['GET'])
def currencies():
    """List the supported display currencies."""
    return jsonify({
        "base": BASE_CURRENCY,
        "currencies": [
            {"code": code, "symbol": CURRENCY_SYMBOLS[code], "rate": str(rate)}
            for code, rate in CONVERSION_RATES.items()
        ],
    }), 200


@app.route('/categories', methods=['GET'])
def categories():
    """List material categories with their quick-add items."""
    return jsonify({
        "categories": [
            {"name": name, "quick_add": QUICK_ADD_ITEMS.get(name, [])}
            for name in MATERIAL_CATEGORIES
        ],
        "flows": sorted(FLOW_PRESETS),
        "default_vat_rate": config.DEFAULT_VAT_RATE,
    }), 200


@app.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({"status": "healthy"}), 200


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=config.PORT, debug=config.DEBUG)
