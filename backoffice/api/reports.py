"""
API: Reportes
Estado de cuenta, deudas y resumen por cliente (JSON o CSV)
"""
from flask import Blueprint, request, jsonify, Response
from ..db import db
from ..services import reports as report_service
from ..utils.parsing import parse_date
from .auth import permission_required

bp = Blueprint("reports", __name__)


def _csv_response(content, filename):
    response = Response(content, mimetype="text/csv")
    response.headers["Content-Disposition"] = f"attachment; filename={filename}"
    return response


def _statement_from_args():
    account_id = request.args.get("account_id")
    if not account_id:
        raise ValueError("Debe indicar account_id")

    currency = request.args.get("currency", "both")
    if currency not in ("USD", "IQD", "both"):
        raise ValueError(f"Moneda inválida: {currency}")

    report_type = request.args.get("report_type", "summary")
    if report_type not in ("summary", "detailed"):
        raise ValueError(f"Tipo de reporte inválido: {report_type}")

    statement = report_service.account_statement(
        account_id,
        date_from=parse_date(request.args.get("from"), "from"),
        date_to=parse_date(request.args.get("to"), "to"),
        currency=currency,
        report_type=report_type,
        transaction_type=request.args.get("transaction_type") or None,
    )
    # get_instance puede haber creado la fila de configuración
    db.session.commit()
    return statement


@bp.route("/account-statement", methods=["GET"])
@permission_required("reports:account_statement")
def account_statement():
    """?account_id=&from=&to=&currency=USD|IQD|both&report_type=summary|detailed&transaction_type="""
    return jsonify(_statement_from_args())


@bp.route("/account-statement/csv", methods=["GET"])
@permission_required("reports:account_statement")
def account_statement_csv():
    statement = _statement_from_args()
    content = report_service.to_csv(report_service.STATEMENT_COLUMNS, statement["transactions"])
    return _csv_response(content, f"estado_cuenta_{statement['account']['id']}.csv")


@bp.route("/debts", methods=["GET"])
@permission_required("reports:debts")
def debts():
    return jsonify(report_service.debts_report(request.args.get("relation_type") or None))


@bp.route("/debts/csv", methods=["GET"])
@permission_required("reports:debts")
def debts_csv():
    report = report_service.debts_report(request.args.get("relation_type") or None)
    content = report_service.to_csv(report_service.DEBTS_COLUMNS, report["entries"])
    return _csv_response(content, "reporte_deudas.csv")


@bp.route("/clients/<client_id>/summary", methods=["GET"])
@permission_required("reports:client_summary")
def client_summary(client_id):
    """Ventas, pagado, pendiente y ganancia de un cliente"""
    return jsonify(report_service.client_summary(client_id))
