"""
Flask page views: staff dashboard, patient records, admin and report pages.
"""

import sys
import traceback

from flask import jsonify, redirect, request

from portal.config import HOSPITAL_NAME, REPORT_PERIODS, REPORT_TYPES
from portal.records import (
    CLINICAL_TABS,
    PATIENT_LOGS,
    filled_fields,
    filter_patients,
    generate_patient_id,
    patient_summary,
    tab_records,
    today,
)
from portal.record_store import RecordStoreError
from portal.reports import parse_period, summarize_patients, summarize_staff
from portal.routing import LOGIN_PATH, dashboard_for, navigation_for
from portal.api.auth import edit_capability_required, error_status, form_data

TAB_NAMES = ", ".join(CLINICAL_TABS)
LOG_NAMES = ", ".join(PATIENT_LOGS)

AUDIT_FILTERS = ("page", "limit", "userId", "action", "resourceType", "result",
                 "startDate", "endDate")


def register_routes(app, store, record_store, resolver):
    """Register all page routes on the Flask *app*."""

    def token():
        return store.get().token

    def page(name, title, **content):
        session = store.get()
        model = {
            "page": name,
            "title": title,
            "hospital": HOSPITAL_NAME,
            "nav": navigation_for(session),
            "capability": resolver.resolve().to_dict(),
        }
        model.update(content)
        return jsonify(model)

    requires_edit = edit_capability_required(resolver)

    # ── Health / info ────────────────────────────────────────────────

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({
            "status": "healthy",
            "service": "Hospital Records Portal",
            "record_store": record_store.base_url,
        }), 200

    @app.route("/unauthorized", methods=["GET"])
    def unauthorized():
        session = store.get()
        return jsonify({
            "page": "unauthorized",
            "title": "Access Denied",
            "message": "You do not have permission to view this page.",
            "home": dashboard_for(session) if session.authenticated else LOGIN_PATH,
        }), 403

    # ── Staff dashboard ──────────────────────────────────────────────

    @app.route("/dashboard", methods=["GET"])
    def dashboard():
        return page("dashboard", "Staff Dashboard", stats=record_store.stats(token()))

    # ── Patients ─────────────────────────────────────────────────────

    @app.route("/patients", methods=["GET"])
    def list_patients():
        patients = record_store.list_patients(token()) or []
        matched = filter_patients(patients, request.args.get("q"))
        return page(
            "patient_records", "Patient Records",
            query=request.args.get("q", ""),
            patients=[patient_summary(p) for p in matched],
        )

    @app.route("/patients/new", methods=["GET", "POST"])
    def create_patient():
        if request.method == "GET":
            return page(
                "patient_registration", "Register Patient",
                editable=resolver.resolve().can_edit_clinical_record,
            )
        return save_new_patient()

    @requires_edit
    def save_new_patient():
        personal = filled_fields(form_data())
        if not personal.get("name"):
            return jsonify({"error": "Patient name is required."}), 400

        try:
            patient_id = personal.pop("patientId", None) or generate_patient_id(
                personal.get("nic"), personal.get("dob"),
            )
        except ValueError as e:
            return jsonify({"error": str(e)}), 400
        saved = record_store.save_patient(token(), patient_id, {"tab1": personal})
        return jsonify({
            "success": True,
            "patient": patient_summary(saved or {"patientId": patient_id, "tab1": personal}),
            "redirect": f"/patients/{patient_id}",
        }), 201

    @app.route("/patients/<patient_id>", methods=["GET"])
    def patient_detail(patient_id):
        patient = record_store.get_patient(token(), patient_id) or {}
        return page(
            "patient_detail", "Personal Details",
            patient=patient_summary(patient),
            personal=patient.get("tab1") or {},
            tabs=[{"name": name, "title": tab.title, "path": f"/patients/{patient_id}/{name}"}
                  for name, tab in CLINICAL_TABS.items()]
            + [{"name": name, "title": title, "path": f"/patients/{patient_id}/{name}"}
               for name, title in PATIENT_LOGS.items()],
        )

    @app.route(f"/patients/<patient_id>/<any({TAB_NAMES}):tab_name>", methods=["GET"])
    def patient_tab(patient_id, tab_name):
        tab = CLINICAL_TABS[tab_name]
        patient = record_store.get_patient(token(), patient_id) or {}
        capability = resolver.resolve()
        return page(
            tab_name, tab.title,
            patient=patient_summary(patient),
            records=tab_records(patient, tab),
            editable=capability.can_edit_clinical_record and not tab.read_only,
        )

    @app.route(f"/patients/<patient_id>/<any({TAB_NAMES}):tab_name>", methods=["POST"])
    @requires_edit
    def save_patient_tab(patient_id, tab_name):
        tab = CLINICAL_TABS[tab_name]
        if tab.read_only:
            return jsonify({"error": f"{tab.title} is read-only."}), 405

        entry = filled_fields(form_data())
        if not entry:
            return jsonify({"error": "Nothing to save: the form is empty."}), 400

        patient = record_store.get_patient(token(), patient_id) or {}
        if tab.single:
            value = entry
        else:
            entry.setdefault("date", today())
            value = tab_records(patient, tab) + [entry]

        # The backend replaces a whole tab on save; carry its sibling fields along.
        section = dict(patient.get(tab.tab_key) or {})
        section[tab.field] = value
        saved = record_store.save_patient(token(), patient_id, {tab.tab_key: section})
        records = tab_records(saved or {}, tab) or value
        return jsonify({"success": True, "records": records}), 200

    @app.route(f"/patients/<patient_id>/<any({LOG_NAMES}):kind>", methods=["GET"])
    def patient_log(patient_id, kind):
        capability = resolver.resolve()
        return page(
            kind, PATIENT_LOGS[kind],
            patient={"id": patient_id},
            records=record_store.list_log(token(), kind, patient_id),
            editable=capability.can_edit_clinical_record,
        )

    @app.route(f"/patients/<patient_id>/<any({LOG_NAMES}):kind>", methods=["POST"])
    @requires_edit
    def add_patient_log(patient_id, kind):
        entry = filled_fields(form_data())
        if not entry:
            return jsonify({"error": "Nothing to save: the form is empty."}), 400
        entry.setdefault("date", today())
        if kind == "hospitalization":
            entry.setdefault("hospitalName", HOSPITAL_NAME)

        record_store.add_log(token(), kind, patient_id, entry)
        return jsonify({
            "success": True,
            "records": record_store.list_log(token(), kind, patient_id),
        }), 201

    # ── Notifications ────────────────────────────────────────────────

    @app.route("/notifications", methods=["GET"])
    def notifications():
        return page("notifications", "Notifications",
                    notifications=record_store.notifications(token()) or [])

    @app.route("/notifications/<notification_id>/read", methods=["POST"])
    def mark_notification_read(notification_id):
        record_store.mark_notification_read(token(), notification_id)
        return jsonify({"success": True, "id": notification_id}), 200

    @app.route("/lost-book", methods=["GET", "POST"])
    def request_lost_book():
        if request.method == "GET":
            return page("request_lost_book", "Request a Lost Book",
                        fields=["patientId", "reason"])

        data = form_data()
        patient_id = str(data.get("patientId") or "").strip()
        reason = str(data.get("reason") or "").strip()
        if not patient_id or not reason:
            return jsonify({"error": "Patient ID and reason are required."}), 400

        record_store.create_notification(
            token(),
            f"Lost book request for Patient ID: {patient_id}. Reason: {reason}",
            "lost_book",
        )
        return jsonify({"success": True, "message": "Request sent successfully!"}), 201

    # ── Admin: dashboard and staff ───────────────────────────────────

    @app.route("/admin-dashboard", methods=["GET"])
    def admin_dashboard():
        stats = dict(record_store.stats(token()) or {})
        stats["pendingStaff"] = len(record_store.pending_staff(token()) or [])
        return page("admin_dashboard", "Administrator Dashboard", stats=stats)

    @app.route("/admin/staff", methods=["GET"])
    def staff_verification():
        return page("staff_verification", "Staff Verification",
                    staff=record_store.list_staff(token()) or [])

    @app.route("/admin/staff/pending", methods=["GET"])
    def pending_staff():
        return page("pending_staff", "Pending Staff Requests",
                    staff=record_store.pending_staff(token()) or [])

    @app.route("/admin/staff/<staff_id>/approve", methods=["POST"])
    def approve_staff(staff_id):
        result = record_store.approve_staff(token(), staff_id) or {}
        return jsonify({"success": True, "message": result.get("message") or "Staff approved."}), 200

    @app.route("/admin/staff/<staff_id>/reject", methods=["POST"])
    def reject_staff(staff_id):
        result = record_store.reject_staff(token(), staff_id) or {}
        return jsonify({"success": True, "message": result.get("message") or "Staff rejected."}), 200

    @app.route("/admin/staff", methods=["POST"])
    def add_staff():
        data = form_data()
        required = ("username", "password", "employee_number", "position")
        if not all(str(data.get(f) or "").strip() for f in required):
            return jsonify({"error": "Please fill in all fields."}), 400
        result = record_store.add_staff(token(), {f: data[f] for f in required}) or {}
        return jsonify({"success": True, "message": result.get("message") or "Staff added."}), 201

    # ── Admin: password requests ─────────────────────────────────────

    @app.route("/admin/password-requests", methods=["GET"])
    def password_requests():
        requests_ = record_store.list_password_requests(token()) or []
        return page("password_requests", "Password Reset Requests",
                    requests=[r for r in requests_ if r.get("status") == "pending"])

    @app.route("/admin/password-requests/history", methods=["GET"])
    def password_request_history():
        requests_ = record_store.list_password_requests(token()) or []
        return page("password_request_history", "Accepted & Rejected Requests",
                    requests=[r for r in requests_ if r.get("status") in ("accepted", "rejected")])

    @app.route("/admin/password-requests/accept", methods=["POST"])
    def accept_password_request():
        username = str(form_data().get("username") or "").strip()
        if not username:
            return jsonify({"error": "username is required"}), 400
        result = record_store.accept_password_request(token(), username) or {}
        return jsonify({
            "success": True,
            "message": result.get("message") or "Request accepted successfully!",
            "username": username,
            "temporary_password": result.get("tempPassword"),
        }), 200

    @app.route("/admin/password-requests/reject", methods=["POST"])
    def reject_password_request():
        data = form_data()
        username = str(data.get("username") or "").strip()
        if not username:
            return jsonify({"error": "username is required"}), 400
        result = record_store.reject_password_request(
            token(), username, str(data.get("reason") or ""),
        ) or {}
        return jsonify({
            "success": True,
            "message": result.get("message") or "Request rejected successfully!",
        }), 200

    # ── Admin: audit ─────────────────────────────────────────────────

    @app.route("/admin/audit-logs", methods=["GET"])
    def audit_logs():
        filters = {k: request.args[k] for k in AUDIT_FILTERS if request.args.get(k)}
        return page("audit_logs", "Audit Logs", filters=filters,
                    logs=record_store.audit_logs(token(), filters))

    @app.route("/admin/audit-stats", methods=["GET"])
    def audit_stats():
        hours = request.args.get("hours", 24, type=int)
        return page("audit_stats", "Audit Statistics", hours=hours,
                    stats=record_store.audit_stats(token(), hours))

    # ── Admin: reports ───────────────────────────────────────────────

    @app.route("/reports", methods=["GET"])
    def reports():
        links = {}
        for report_type in REPORT_TYPES:
            try:
                period = parse_period(request.args.get(report_type))
            except ValueError as e:
                return jsonify({"error": str(e)}), 400
            links[report_type] = {
                "period": period,
                "download": record_store.download_url(report_type, period),
            }
        return page("reports", "Reports & Analytics", periods=list(REPORT_PERIODS), reports=links)

    @app.route("/reports/staff", methods=["GET"])
    def staff_report():
        try:
            period = parse_period(request.args.get("period"))
        except ValueError as e:
            return jsonify({"error": str(e)}), 400
        rows = record_store.staff_report(token()) or []
        return page("staff_report", "Staff Activity Report",
                    summary=summarize_staff(rows, period), staff=rows)

    @app.route("/reports/patient", methods=["GET"])
    def patient_report():
        try:
            period = parse_period(request.args.get("period"))
        except ValueError as e:
            return jsonify({"error": str(e)}), 400
        rows = record_store.patient_report(token()) or []
        return page("patient_report", "Patient Summary Report",
                    summary=summarize_patients(rows, period))

    # ── Error handlers ───────────────────────────────────────────────

    @app.errorhandler(RecordStoreError)
    def record_store_failed(e):
        if e.status == 401:
            print("[auth] Record store rejected the session; signing out", file=sys.stderr)
            store.clear()
            return redirect(LOGIN_PATH)
        return jsonify({"error": e.message}), error_status(e)

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Page not found", "message": str(e)}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed", "message": str(e)}), 405

    @app.errorhandler(500)
    def internal_error(e):
        traceback.print_exc()
        return jsonify({"error": "Internal server error", "message": str(e)}), 500
