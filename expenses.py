"""
Expense routes: create, bulk CSV import, list, update, delete, stats, export
"""
import io

from flask import Blueprint, current_app, jsonify, request, send_file

import csv_ingest
import expense_stats
from auth import get_current_user, login_required
from database import get_context
from errors import NotFoundError
from schemas import (
    DeleteExpensesRequest,
    ExpenseCreate,
    ExpenseFilter,
    ExpenseQuery,
    ExpenseUpdate,
    parse_model,
    parse_query,
)

expenses_bp = Blueprint("expenses", __name__)


def _no_cache(response):
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    response.headers["Pragma"] = "no-cache"
    response.headers["Expires"] = "0"
    return response


@expenses_bp.route("", methods=["POST"])
@login_required
def add_expense():
    data = parse_model(ExpenseCreate, request.get_json(silent=True), message="All fields are required.")
    expense = get_context().store.add_expense(get_current_user().id, data.to_fields())
    return jsonify({"message": "Expense added successfully.", "expense": expense.to_dict()}), 201


@expenses_bp.route("/bulk", methods=["POST"])
@login_required
def bulk_add_expenses():
    ctx = get_context()
    result = csv_ingest.import_upload(
        ctx.store, request.files.get("file"), ctx.upload_folder, get_current_user().id
    )
    return jsonify({
        "message": "Expenses added successfully.",
        "inserted": result.inserted,
        "skipped": result.skipped,
    }), 201


@expenses_bp.route("", methods=["GET"])
@login_required
def get_expenses():
    ctx = get_context()
    query = parse_query(ExpenseQuery, request.args)
    page = ctx.store.list_expenses(get_current_user().id, query, max_limit=ctx.max_page_size)
    return jsonify(page.to_dict()), 200


@expenses_bp.route("/<expense_id>", methods=["PUT", "PATCH"])
@login_required
def update_expense(expense_id):
    data = parse_model(ExpenseUpdate, request.get_json(silent=True))
    expense = get_context().store.update_expense(get_current_user().id, expense_id, data.to_fields())
    return jsonify({"message": "Expense updated successfully.", "expense": expense.to_dict()}), 200


@expenses_bp.route("", methods=["DELETE"])
@login_required
def delete_expenses():
    data = parse_model(DeleteExpensesRequest, request.get_json(silent=True), message="Invalid or missing expense IDs.")
    deleted = get_context().store.delete_expenses(get_current_user().id, data.ids)
    return jsonify({"message": "Expenses deleted successfully.", "deleted": deleted}), 200


@expenses_bp.route("/stats", methods=["GET"])
@login_required
def expense_statistics():
    criteria = parse_query(ExpenseFilter, request.args)
    expenses = get_context().store.all_expenses(get_current_user().id, criteria)
    return jsonify(expense_stats.summarize(expenses)), 200


@expenses_bp.route("/stats/<kind>.png", methods=["GET"])
@login_required
def expense_chart(kind):
    if kind not in expense_stats.CHART_KINDS:
        raise NotFoundError(f"Unknown chart: {kind}")
    criteria = parse_query(ExpenseFilter, request.args)
    expenses = get_context().store.all_expenses(get_current_user().id, criteria)
    buf = expense_stats.render_chart(expenses, kind)
    return _no_cache(send_file(buf, mimetype="image/png"))


@expenses_bp.route("/export", methods=["GET"])
@login_required
def export_csv():
    criteria = parse_query(ExpenseFilter, request.args)
    expenses = get_context().store.all_expenses(get_current_user().id, criteria)
    csv_bytes = expense_stats.export_frame(expenses).to_csv(index=False).encode("utf-8")
    current_app.logger.info("Exported %d expenses for user %s", len(expenses), get_current_user().id)
    return send_file(io.BytesIO(csv_bytes), mimetype="text/csv", as_attachment=True, download_name="expenses.csv")
