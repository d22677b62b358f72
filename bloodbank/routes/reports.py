from flask import Blueprint, jsonify, request, current_app, abort, send_file
from flask_login import login_required, current_user
from bloodbank.models.blood import REQUEST_STATUSES
from bloodbank.utils.api import date_arg
from bloodbank.utils.compatibility import is_valid_blood_group
from bloodbank.utils.decorators import admin_required
from bloodbank.utils.reports import inventory_report, donations_report, requests_report, render_csv, render_pdf
from datetime import date, datetime

reports = Blueprint('reports', __name__)

EXPORT_FORMATS = ('csv', 'pdf')


def period_args():
    start_date, end_date = date_arg('startDate'), date_arg('endDate')
    if start_date and end_date and end_date < start_date:
        abort(400, description='endDate cannot be before startDate')
    return start_date, end_date


def report_response(name, title, report):
    """
    JSON by default; a csv or pdf download when format is given
    """
    export_format = request.args.get('format')
    if not export_format or export_format == 'json':
        return jsonify(report)
    if export_format not in EXPORT_FORMATS:
        abort(400, description=f'format must be one of: {", ".join(EXPORT_FORMATS)}')

    current_app.logger.info(f"Admin {current_user.id} exported the {name} report as {export_format}")
    download_name = f'{name}_report_{datetime.now().strftime("%Y%m%d_%H%M%S")}.{export_format}'
    if export_format == 'csv':
        return send_file(render_csv(report), mimetype='text/csv', as_attachment=True,
                         download_name=download_name)
    return send_file(render_pdf(title, report), mimetype='application/pdf', as_attachment=True,
                     download_name=download_name)


@reports.route('/inventory', methods=['GET'])
@login_required
@admin_required
def inventory():
    start_date, end_date = period_args()
    blood_group = request.args.get('bloodGroup')
    if blood_group and not is_valid_blood_group(blood_group):
        abort(400, description=f'Unknown blood group: {blood_group}')

    report = inventory_report(start_date, end_date, blood_group)
    return report_response('inventory', 'Blood Inventory Report', report)


@reports.route('/donations', methods=['GET'])
@login_required
@admin_required
def donations():
    year = request.args.get('year', date.today().year, type=int)
    if not 1900 <= year <= 9999:
        abort(400, description='year is out of range')

    report = donations_report(year)
    return report_response('donations', f'Donations Report {year}', report)


@reports.route('/requests', methods=['GET'])
@login_required
@admin_required
def blood_requests():
    start_date, end_date = period_args()
    status = request.args.get('status')
    if status and status not in REQUEST_STATUSES:
        abort(400, description=f'Unknown request status: {status}')

    report = requests_report(start_date, end_date, status)
    return report_response('requests', 'Blood Requests Report', report)
