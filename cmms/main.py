from flask import Flask, request, jsonify
from flask_cors import CORS
from dotenv import load_dotenv
from datetime import date
import os
from typing import Tuple
import logging

load_dotenv()

from cmms.config_manager import get_config, get_setting, set_config
from cmms.database import close_db, get_database_info
from cmms.models import FMDMetrics, InventoryKind, WorkOrder
from cmms.services import data_service
from cmms.services.contract_service import contracts_expiring_within, days_until_expiry, effective_status
from cmms.services.fmd_metrics_service import compute_metrics
from cmms.services.invoicing_service import invoicing_action, needs_invoicing, next_invoice_status
from cmms.services.inventory_service import stock_alert_summary
from cmms.services.planning_service import is_overdue, summarize_work_orders
from cmms.validators import parse_period_days, validate_configuration, validate_record_id

app = Flask(__name__)
app.config['DATABASE_PATH'] = os.environ.get('DATABASE_PATH')
CORS(app)
logging.basicConfig(level=logging.INFO)


def _error(code: str, message: str, status: int) -> Tuple[str, int]:
    return jsonify({"error": {"code": code, "message": message}}), status


def _metrics_to_dict(metrics: FMDMetrics) -> dict:
    # Decimals are serialized as strings to keep exactly two decimals ("6.00").
    data = metrics.model_dump(mode='json')
    return {
        "mttr": data["mttr"],
        "mtbf": data["mtbf"],
        "availability": data["availability"],
        "totalBreakdowns": data["total_breakdowns"],
    }


def _work_order_to_dict(work_order: WorkOrder, today: date) -> dict:
    data = work_order.model_dump(mode='json')
    data["overdue"] = is_overdue(work_order, today)
    return data


@app.teardown_appcontext
def teardown_db(exception):
    close_db(exception)

@app.route('/health', methods=['GET'])
def health_check() -> Tuple[str, int]:
    return jsonify({"status": "ok", "database": get_database_info()["type"]}), 200

# --- Performance (FMD) ---

@app.route('/api/performance/metrics', methods=['GET'])
def get_performance_metrics():
    """MTTR / MTBF / availability over the last periodDays, optionally for one asset."""
    period_days, error = parse_period_days(
        request.args.get('periodDays', get_setting('performance', 'default_period_days'))
    )
    if error:
        return _error("BAD_REQUEST", error, 400)

    asset_id = request.args.get('assetId')
    if asset_id is not None:
        is_valid, error = validate_record_id(asset_id, 'assetId')
        if not is_valid:
            return _error("BAD_REQUEST", error, 400)

    try:
        events = data_service.get_breakdown_events(period_days, asset_id=asset_id)
        metrics = compute_metrics(events, period_days)
        result = _metrics_to_dict(metrics)
        result.update({"periodDays": period_days, "assetId": asset_id})
        return jsonify(result), 200
    except ValueError as e:
        return _error("BAD_REQUEST", str(e), 400)
    except Exception as e:
        app.logger.exception("Error computing performance metrics.")
        return _error("INTERNAL_SERVER_ERROR", f"An unexpected error occurred: {str(e)}", 500)

# --- Work Orders & Invoicing ---

@app.route('/api/work-orders', methods=['GET'])
def get_work_orders():
    try:
        today = date.today()
        work_orders = data_service.get_work_orders()
        return jsonify({"value": [_work_order_to_dict(wo, today) for wo in work_orders]}), 200
    except Exception as e:
        app.logger.exception("Error fetching work orders.")
        return _error("INTERNAL_SERVER_ERROR", str(e), 500)

@app.route('/api/work-orders/<id>/invoicing', methods=['GET'])
def get_work_order_invoicing(id):
    """Invoicing decision for a single work order."""
    is_valid, error = validate_record_id(id, 'Work order ID')
    if not is_valid:
        return _error("BAD_REQUEST", error, 400)

    try:
        work_order = data_service.get_work_order(id)
        if not work_order:
            return _error("NOT_FOUND", "Work order not found", 404)

        has_contract = data_service.has_active_contract_for_work_order(work_order)
        return jsonify({
            "workOrderId": work_order.id,
            "status": work_order.status.value,
            "hasActiveContract": has_contract,
            "needsInvoicing": needs_invoicing(work_order, has_contract),
            "action": invoicing_action(work_order, has_contract).value,
            "invoiceStatus": work_order.invoice_status.value if work_order.invoice_status else None,
        }), 200
    except Exception as e:
        app.logger.exception(f"Error computing invoicing for work order {id}.")
        return _error("INTERNAL_SERVER_ERROR", str(e), 500)

@app.route('/api/work-orders/<id>/invoice-status', methods=['POST'])
def advance_invoice_status(id):
    """Move the invoice of a completed work order to its next state."""
    is_valid, error = validate_record_id(id, 'Work order ID')
    if not is_valid:
        return _error("BAD_REQUEST", error, 400)

    try:
        work_order = data_service.get_work_order(id)
        if not work_order:
            return _error("NOT_FOUND", "Work order not found", 404)

        has_contract = data_service.has_active_contract_for_work_order(work_order)
        if not needs_invoicing(work_order, has_contract):
            return _error("BAD_REQUEST", "Work order is covered by an active contract", 400)

        new_status = next_invoice_status(work_order)
        data_service.update_invoice_status(work_order.id, new_status)
        return jsonify({"workOrderId": work_order.id, "invoiceStatus": new_status.value}), 200
    except ValueError as e:
        return _error("BAD_REQUEST", str(e), 400)
    except Exception as e:
        app.logger.exception(f"Error updating invoice status of work order {id}.")
        return _error("INTERNAL_SERVER_ERROR", str(e), 500)

# --- Contracts & Planning ---

@app.route('/api/contracts', methods=['GET'])
def get_contracts():
    try:
        today = date.today()
        warning_days = get_setting('contracts', 'expiry_warning_days')
        contracts = []
        for contract in data_service.get_contracts():
            data = contract.model_dump(mode='json')
            data["effectiveStatus"] = effective_status(contract, today, warning_days).value
            data["daysLeft"] = days_until_expiry(contract, today)
            contracts.append(data)
        return jsonify({"value": contracts}), 200
    except Exception as e:
        app.logger.exception("Error fetching contracts.")
        return _error("INTERNAL_SERVER_ERROR", str(e), 500)

@app.route('/api/contracts/expiring', methods=['GET'])
def get_expiring_contracts():
    try:
        today = date.today()
        warning_days = get_setting('contracts', 'expiry_warning_days')
        expiring = contracts_expiring_within(data_service.get_contracts(), today, warning_days)
        return jsonify({
            "warningDays": warning_days,
            "value": [
                dict(c.model_dump(mode='json'), daysLeft=days_until_expiry(c, today))
                for c in expiring
            ],
        }), 200
    except Exception as e:
        app.logger.exception("Error fetching expiring contracts.")
        return _error("INTERNAL_SERVER_ERROR", str(e), 500)

@app.route('/api/planning/stats', methods=['GET'])
def get_planning_stats():
    try:
        warning_days = get_setting('planning', 'warning_days')
        stats = summarize_work_orders(data_service.get_work_orders(), date.today(), warning_days)
        return jsonify(stats.model_dump()), 200
    except Exception as e:
        app.logger.exception("Error computing planning statistics.")
        return _error("INTERNAL_SERVER_ERROR", str(e), 500)

# --- Inventory ---

@app.route('/api/inventory/alerts', methods=['GET'])
def get_inventory_alerts():
    """Parts and reagents at or below their minimum stock. Optional ?kind=part|reagent."""
    kind = request.args.get('kind')
    if kind is not None:
        try:
            kind = InventoryKind(kind)
        except ValueError:
            allowed = ', '.join(k.value for k in InventoryKind)
            return _error("BAD_REQUEST", f"kind must be one of: {allowed}", 400)

    try:
        summary = stock_alert_summary(data_service.get_inventory_items(kind))
        return jsonify({
            "totalItems": summary.total_items,
            "inAlert": summary.in_alert,
            "value": [item.model_dump(mode='json') for item in summary.items],
        }), 200
    except Exception as e:
        app.logger.exception("Error computing inventory alerts.")
        return _error("INTERNAL_SERVER_ERROR", str(e), 500)

# --- Configuration ---

@app.route('/api/configuration', methods=['GET'])
def get_configuration():
    try:
        config = get_config()
        return jsonify(config)
    except Exception as e:
        app.logger.exception("Failed to read configuration.")
        return _error("CONFIG_READ_ERROR", str(e), 500)

@app.route('/api/configuration', methods=['POST'])
def set_configuration():
    config_data = request.get_json(silent=True)
    is_valid, error = validate_configuration(config_data)
    if not is_valid:
        return _error("BAD_REQUEST", error, 400)
    try:
        set_config(config_data)
        return jsonify({"status": "ok"}), 200
    except Exception as e:
        app.logger.exception("Failed to save configuration.")
        return _error("CONFIG_WRITE_ERROR", str(e), 500)


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5001))
    debug = os.environ.get('FLASK_DEBUG', 'false').lower() == 'true'
    app.run(debug=debug, port=port, host='0.0.0.0')
