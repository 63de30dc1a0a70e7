import os
from datetime import timedelta
from functools import wraps

import click
import pandas as pd
from flask import Flask, Response, request, jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager, create_access_token, verify_jwt_in_request, get_jwt_identity
from flask_jwt_extended.exceptions import JWTExtendedException
from flask_login import LoginManager, login_required, current_user
from jwt.exceptions import PyJWTError
from sqlalchemy import func
from werkzeug.exceptions import HTTPException

import need_lifecycle
from date_utils import format_datetime, format_relative_time
from errors import Unauthorized, Forbidden, NotFound, ValidationError, InternalError
from models import (
    db, User, Organization, Need, Dispatch, Resource, MAX_QUANTITY,
    ROLE_WORKER, ROLE_ADMIN,
    NEED_TYPES, URGENCY_LEVELS, DISPATCH_STATUSES, DISPATCH_DISPATCHED, RESOURCE_STATUSES,
)
from schemas import (
    load,
    SignupIn, LoginIn, AdminUserCreateIn, AdminUserUpdateIn, UserIdIn, RoleChangeIn,
    NeedCreateIn, FulfillIn, DispatchCreateIn, MarkReachedIn, DispatchStatusIn,
    StockAddIn, StockSetIn,
    OrganizationIn, OrganizationUpdateIn, OrganizationIdIn, MemberIn,
    ResourceIn, ResourceStatusIn, AssignIn,
)
from status_helpers import ALL_NEED_STATUSES, WORKFLOW_LADDERS, WORKFLOW_STOCK, WORKFLOW_DISPATCH

app = Flask(__name__)
app.secret_key = os.environ.get("SECRET_KEY", "dev-secret")
db_url = os.environ.get("DATABASE_URL", "sqlite:///db.sqlite3")
app.config["SQLALCHEMY_DATABASE_URI"] = db_url
app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
app.config["JWT_SECRET_KEY"] = os.environ.get("JWT_SECRET_KEY", "dev-jwt-secret-change-me-before-deploying")
app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(hours=int(os.environ.get("JWT_EXPIRES_HOURS", 24)))
app.config["NEED_WORKFLOW"] = os.environ.get("NEED_WORKFLOW", WORKFLOW_DISPATCH)
app.config["DEFAULT_REQUIRED_QUANTITY"] = int(os.environ.get("DEFAULT_REQUIRED_QUANTITY", 1))
app.logger.setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())

if app.config["NEED_WORKFLOW"] not in WORKFLOW_LADDERS:
    raise RuntimeError(f"NEED_WORKFLOW must be one of: {', '.join(WORKFLOW_LADDERS)}")

db.init_app(app)
jwt_manager = JWTManager(app)
CORS(app, origins=os.environ.get("CORS_ORIGINS", "*"))

# ---------- Flask-Login Configuration ----------
login_manager = LoginManager()
login_manager.init_app(app)


@login_manager.request_loader
def load_user_from_request(req):
    """Resolve the bearer token on the request to a user"""
    try:
        verify_jwt_in_request()
        user_id = int(get_jwt_identity())
    except (JWTExtendedException, PyJWTError, TypeError, ValueError):
        return None
    return db.session.get(User, user_id)


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify(Unauthorized().to_dict()), 401


# ---------- Utility ----------
def role_required(*allowed_roles):
    """Decorator to restrict access to specific roles"""
    def decorator(f):
        @wraps(f)
        @login_required
        def decorated_function(*args, **kwargs):
            if not current_user.has_any_role(*allowed_roles):
                raise Forbidden()
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def workflow_required(workflow):
    """Decorator for endpoints that only exist in one need workflow"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            active = app.config["NEED_WORKFLOW"]
            if active != workflow:
                raise ValidationError(f"{request.method} {request.path} is disabled for the {active} workflow")
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def acting_user():
    """The authenticated User object behind current_user"""
    return current_user._get_current_object()


def issue_token(user):
    return create_access_token(identity=str(user.id), additional_claims={"role": user.role})


def get_or_404(model, record_id, label):
    record = db.session.get(model, record_id) if record_id <= MAX_QUANTITY else None
    if record is None:
        raise NotFound(f"{label} not found")
    return record


def filter_arg(name, allowed):
    """Read an optional enum query parameter; 'all' and empty mean no filter"""
    value = request.args.get(name, "").strip()
    if not value or value == "all":
        return None
    if value not in allowed:
        raise ValidationError(f"{name} must be one of: {', '.join(allowed)}")
    return value


def can_manage_organization(user, organization):
    return user.has_role(ROLE_ADMIN) or organization.admin_id == user.id


def csv_response(df, filename):
    return Response(
        df.to_csv(index=False),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


# ---------- Error Handlers ----------
@app.errorhandler(HTTPException)
def handle_http_error(error):
    db.session.rollback()
    return jsonify({"error": error.description or error.name}), error.code


@app.errorhandler(Exception)
def handle_unexpected_error(error):
    db.session.rollback()
    app.logger.exception("Unhandled error on %s %s", request.method, request.path)
    return jsonify(InternalError().to_dict()), 500


# ---------- Authentication Routes ----------
@app.route("/auth/signup", methods=["POST"])
def signup():
    data = load(SignupIn, request.get_json(silent=True))

    if User.query.filter_by(email=data.email).first():
        raise ValidationError("User already exists")

    user = User(email=data.email, name=data.name, role=data.role)
    user.set_password(data.password)
    db.session.add(user)
    db.session.commit()

    app.logger.info("User %s signed up as %s", user.id, user.role)
    return jsonify({"token": issue_token(user), "user": user.to_dict()}), 201


@app.route("/auth/login", methods=["POST"])
def login():
    data = load(LoginIn, request.get_json(silent=True))

    user = User.query.filter_by(email=data.email).first()
    if user is None or not user.check_password(data.password):
        raise Unauthorized("Invalid credentials")

    return jsonify({"token": issue_token(user), "user": user.to_dict()})


@app.route("/auth/verify")
@login_required
def verify():
    return jsonify(current_user.to_dict())


# ---------- User Administration ----------
@app.route("/admin/users")
@role_required(ROLE_ADMIN)
def admin_users():
    users = User.query.order_by(User.created_at.desc(), User.id.desc()).all()
    return jsonify({"users": [user.to_dict() for user in users]})


@app.route("/admin/users", methods=["POST"])
@role_required(ROLE_ADMIN)
def admin_user_create():
    data = load(AdminUserCreateIn, request.get_json(silent=True))

    if User.query.filter_by(email=data.email).first():
        raise ValidationError("User already exists")

    user = User(email=data.email, name=data.name, role=data.role)
    user.set_password(data.password)
    db.session.add(user)
    db.session.commit()

    app.logger.info("Admin %s created user %s (%s)", current_user.id, user.id, user.role)
    return jsonify(user.to_dict()), 201


@app.route("/admin/users", methods=["PATCH"])
@role_required(ROLE_ADMIN)
def admin_user_update():
    """Update profile fields of any user. Passwords are never changed here."""
    data = load(AdminUserUpdateIn, request.get_json(silent=True))
    user = get_or_404(User, data.user_id, "User")
    updates = data.updates.model_dump(exclude_unset=True)
    # Only organizationId may be cleared with null
    updates = {field: value for field, value in updates.items() if value is not None or field == "organization_id"}

    if "email" in updates and updates["email"] != user.email:
        if User.query.filter_by(email=updates["email"]).first():
            raise ValidationError("Email is already in use")
    if updates.get("organization_id") is not None:
        get_or_404(Organization, updates["organization_id"], "Organization")
    if user.role == ROLE_ADMIN and updates.get("role", ROLE_ADMIN) != ROLE_ADMIN:
        if User.query.filter_by(role=ROLE_ADMIN).count() <= 1:
            raise ValidationError("Cannot demote the last admin user")

    for field, value in updates.items():
        setattr(user, field, value)
    db.session.commit()

    return jsonify(user.to_dict())


def delete_user(user_id):
    user = get_or_404(User, user_id, "User")

    if user.role == ROLE_ADMIN and User.query.filter_by(role=ROLE_ADMIN).count() <= 1:
        raise ValidationError("Cannot delete the last admin user")
    if Need.query.filter_by(created_by_id=user.id).first():
        raise ValidationError("Cannot delete a user who has reported needs")
    if Organization.query.filter_by(admin_id=user.id).first():
        raise ValidationError("Cannot delete a user who administers an organization")

    Dispatch.query.filter_by(dispatched_by_id=user.id).update({"dispatched_by_id": None})
    db.session.delete(user)
    db.session.commit()

    app.logger.info("Admin %s deleted user %s", current_user.id, user_id)
    return jsonify({"message": "User deleted successfully"})


@app.route("/admin/users", methods=["DELETE"])
@role_required(ROLE_ADMIN)
def admin_user_delete():
    data = load(UserIdIn, request.get_json(silent=True))
    return delete_user(data.user_id)


@app.route("/admin/users/<int:user_id>", methods=["DELETE"])
@role_required(ROLE_ADMIN)
def admin_user_delete_by_id(user_id):
    return delete_user(user_id)


@app.route("/users/<int:user_id>", methods=["PATCH"])
@role_required(ROLE_ADMIN)
def user_change_role(user_id):
    """Change a user's role and hand back a token carrying the new role"""
    data = load(RoleChangeIn, request.get_json(silent=True))
    user = get_or_404(User, user_id, "User")

    if user.role == ROLE_ADMIN:
        raise ValidationError("Cannot change admin role")

    user.role = data.role
    db.session.commit()

    return jsonify({"user": user.to_dict(), "token": issue_token(user)})


# ---------- Needs ----------
@app.route("/needs")
@login_required
def needs():
    query = Need.query
    status = filter_arg("status", ALL_NEED_STATUSES)
    need_type = filter_arg("type", NEED_TYPES)
    urgency = filter_arg("urgency", URGENCY_LEVELS)
    if status:
        query = query.filter(Need.status == status)
    if need_type:
        query = query.filter(Need.type == need_type)
    if urgency:
        query = query.filter(Need.urgency == urgency)

    results = query.order_by(Need.created_at.desc(), Need.id.desc()).all()
    return jsonify([need.to_dict() for need in results])


@app.route("/needs", methods=["POST"])
@login_required
def need_create():
    data = load(NeedCreateIn, request.get_json(silent=True))
    need = need_lifecycle.create_need(
        current_user,
        need_type=data.type,
        description=data.description,
        urgency=data.urgency,
        latitude=data.location.lat,
        longitude=data.location.lng,
        required_quantity=data.required_quantity,
        default_required_quantity=app.config["DEFAULT_REQUIRED_QUANTITY"],
    )
    return jsonify(need.to_dict()), 201


@app.route("/needs/<int:need_id>")
@login_required
def need_details(need_id):
    need = get_or_404(Need, need_id, "Need")
    return jsonify(need.to_dict(include_dispatches=True))


@app.route("/needs/u/<int:user_id>")
@login_required
def needs_by_user(user_id):
    if user_id > MAX_QUANTITY:
        return jsonify([])
    results = Need.query.filter_by(created_by_id=user_id).order_by(Need.created_at.desc(), Need.id.desc()).all()
    return jsonify([need.to_dict() for need in results])


@app.route("/needs/export.csv")
@role_required(ROLE_ADMIN)
def export_needs():
    rows = Need.query.order_by(Need.id.asc()).all()
    df = pd.DataFrame([{
        "id": need.id,
        "type": need.type,
        "urgency": need.urgency,
        "status": need.status,
        "required_quantity": need.required_quantity,
        "fulfilled_quantity": need.fulfilled_quantity,
        "lat": need.latitude,
        "lng": need.longitude,
        "reported_by": need.created_by.email if need.created_by else "",
        "dispatch_count": len(need.dispatches),
        "created_at": format_datetime(need.created_at),
        "description": need.description,
    } for need in rows], columns=[
        "id", "type", "urgency", "status", "required_quantity", "fulfilled_quantity",
        "lat", "lng", "reported_by", "dispatch_count", "created_at", "description",
    ])
    return csv_response(df, "needs.csv")


@app.route("/needs/<int:need_id>/fulfill", methods=["PATCH"])
@role_required(ROLE_WORKER, ROLE_ADMIN)
@workflow_required(WORKFLOW_STOCK)
def need_fulfill(need_id):
    data = load(FulfillIn, request.get_json(silent=True))
    need = need_lifecycle.fulfill(need_id, data.quantity)
    return jsonify(need.to_dict())


@app.route("/needs/<int:need_id>/dispatch", methods=["POST"])
@role_required(ROLE_WORKER, ROLE_ADMIN)
@workflow_required(WORKFLOW_DISPATCH)
def need_dispatch(need_id):
    data = load(DispatchCreateIn, request.get_json(silent=True))
    record = need_lifecycle.dispatch(need_id, data.eta, data.resource_amount, user=current_user)
    return jsonify({
        "message": "Resources dispatched successfully",
        "dispatch": record.to_dict(),
        "need": record.need.to_dict(),
    }), 201


@app.route("/needs/<int:need_id>/dispatch", methods=["PATCH"])
@role_required(ROLE_WORKER, ROLE_ADMIN)
@workflow_required(WORKFLOW_DISPATCH)
def need_dispatch_reached(need_id):
    data = load(MarkReachedIn, request.get_json(silent=True))
    record, need = need_lifecycle.mark_reached(need_id, data.dispatch_id)
    return jsonify({
        "message": "Dispatch marked as reached",
        "dispatch": record.to_dict(),
        "need": need.to_dict(),
    })


# ---------- Dispatches ----------
@app.route("/dispatches")
@login_required
def dispatches():
    query = Dispatch.query
    status = filter_arg("status", DISPATCH_STATUSES)
    if status:
        query = query.filter(Dispatch.status == status)
    results = query.order_by(Dispatch.dispatched_at.desc(), Dispatch.id.desc()).all()
    return jsonify([record.to_dict(include_need=True) for record in results])


@app.route("/dispatches/<int:dispatch_id>")
@login_required
def dispatch_details(dispatch_id):
    record = get_or_404(Dispatch, dispatch_id, "Dispatch")
    return jsonify(record.to_dict(include_need=True))


@app.route("/dispatches/<int:dispatch_id>", methods=["PATCH"])
@role_required(ROLE_WORKER, ROLE_ADMIN)
@workflow_required(WORKFLOW_DISPATCH)
def dispatch_update_status(dispatch_id):
    data = load(DispatchStatusIn, request.get_json(silent=True))
    record = need_lifecycle.update_dispatch_status(dispatch_id, data.status)
    return jsonify({
        "message": f"Dispatch marked as {data.status}",
        "dispatch": record.to_dict(),
    })


@app.route("/dispatches/<int:dispatch_id>", methods=["DELETE"])
@role_required(ROLE_ADMIN)
def dispatch_delete(dispatch_id):
    need_lifecycle.remove_dispatch(dispatch_id)
    return jsonify({"message": "Dispatch removed", "id": dispatch_id})


# ---------- Stock ----------
def stock_listing():
    return [stock.to_dict() for stock in need_lifecycle.list_stock()]


@app.route("/stock")
@login_required
def stock():
    return jsonify(stock_listing())


@app.route("/stock", methods=["POST"])
@role_required(ROLE_ADMIN)
def stock_add():
    data = load(StockAddIn, request.get_json(silent=True))
    need_lifecycle.add_stock(data.type, data.quantity)
    return jsonify(stock_listing())


@app.route("/stock", methods=["PATCH"])
@role_required(ROLE_ADMIN)
def stock_set():
    data = load(StockSetIn, request.get_json(silent=True))
    need_lifecycle.set_stock(data.type, data.quantity)
    return jsonify(stock_listing())


@app.route("/stock/import", methods=["POST"])
@role_required(ROLE_ADMIN)
def stock_import():
    f = request.files.get("file")
    if not f:
        raise ValidationError("No file uploaded")
    summary = need_lifecycle.import_stock(f.stream)
    return jsonify({"summary": summary, "stock": stock_listing()})


# ---------- Organizations ----------
@app.route("/organizations")
@login_required
def organizations():
    query = Organization.query
    search = request.args.get("search", "").strip()
    if search:
        query = query.filter(Organization.name.ilike(f"%{search}%"))
    results = query.order_by(Organization.created_at.desc(), Organization.id.desc()).all()
    return jsonify([organization.to_dict() for organization in results])


def ensure_unique_organization(name=None, contact_email=None, exclude_id=None):
    for field, column, value in (("name", Organization.name, name),
                                 ("contact email", Organization.contact_email, contact_email)):
        if value is None:
            continue
        query = Organization.query.filter(column == value)
        if exclude_id is not None:
            query = query.filter(Organization.id != exclude_id)
        if query.first():
            raise ValidationError(f"An organization with this {field} already exists")


@app.route("/organizations", methods=["POST"])
@login_required
def organization_create():
    data = load(OrganizationIn, request.get_json(silent=True))
    ensure_unique_organization(data.name, data.contact_email)

    user = acting_user()
    organization = Organization(
        name=data.name,
        description=data.description,
        contact_email=data.contact_email,
        contact_phone=data.contact_phone,
        address=data.address,
        website=data.website,
        admin_id=user.id,
    )
    organization.members.append(user)
    db.session.add(organization)
    db.session.flush()
    if user.organization_id is None:
        user.organization_id = organization.id
    db.session.commit()

    app.logger.info("Organization %s created by user %s", organization.id, user.id)
    return jsonify(organization.to_dict()), 201


@app.route("/organizations", methods=["PATCH"])
@login_required
def organization_update():
    data = load(OrganizationUpdateIn, request.get_json(silent=True))
    organization = get_or_404(Organization, data.organization_id, "Organization")
    if not can_manage_organization(current_user, organization):
        raise Forbidden("Only the organization admin can update it")

    updates = data.model_dump(exclude_unset=True, exclude={"organization_id"})
    ensure_unique_organization(updates.get("name"), updates.get("contact_email"), exclude_id=organization.id)
    for field, value in updates.items():
        if field in ("name", "description", "contact_email") and value is None:
            continue
        setattr(organization, field, value)
    db.session.commit()

    return jsonify(organization.to_dict())


@app.route("/organizations", methods=["DELETE"])
@login_required
def organization_delete():
    data = load(OrganizationIdIn, request.get_json(silent=True))
    organization = get_or_404(Organization, data.organization_id, "Organization")
    if not can_manage_organization(current_user, organization):
        raise Forbidden("Only the organization admin can delete it")

    User.query.filter_by(organization_id=organization.id).update({"organization_id": None})
    Need.query.filter_by(assigned_to_id=organization.id).update({"assigned_to_id": None})
    db.session.delete(organization)
    db.session.commit()

    app.logger.info("Organization %s deleted by user %s", data.organization_id, current_user.id)
    return jsonify({"message": "Organization deleted successfully"})


@app.route("/organizations/<int:organization_id>/members")
@login_required
def organization_members(organization_id):
    organization = get_or_404(Organization, organization_id, "Organization")
    return jsonify([member.to_summary() for member in organization.members])


@app.route("/organizations/<int:organization_id>/members", methods=["POST"])
@login_required
def organization_member_add(organization_id):
    data = load(MemberIn, request.get_json(silent=True))
    organization = get_or_404(Organization, organization_id, "Organization")
    if not can_manage_organization(current_user, organization):
        raise Forbidden("Only the organization admin can add members")

    member = get_or_404(User, data.member_id, "User")
    if organization.is_member(member):
        raise ValidationError("User is already a member")

    organization.members.append(member)
    if member.organization_id is None:
        member.organization_id = organization.id
    db.session.commit()

    return jsonify([m.to_summary() for m in organization.members])


@app.route("/organizations/<int:organization_id>/members", methods=["DELETE"])
@login_required
def organization_member_remove(organization_id):
    data = load(MemberIn, request.get_json(silent=True))
    organization = get_or_404(Organization, organization_id, "Organization")
    if not can_manage_organization(current_user, organization):
        raise Forbidden("Only the organization admin can remove members")
    if data.member_id == organization.admin_id:
        raise ValidationError("Cannot remove organization admin")

    for member in list(organization.members):
        if member.id == data.member_id:
            organization.members.remove(member)
            if member.organization_id == organization.id:
                member.organization_id = None
    db.session.commit()

    return jsonify([m.to_summary() for m in organization.members])


# ---------- Resources ----------
@app.route("/resources")
@login_required
def resources():
    query = Resource.query
    resource_type = filter_arg("type", NEED_TYPES)
    status = filter_arg("status", RESOURCE_STATUSES)
    if resource_type:
        query = query.filter(Resource.type == resource_type)
    if status:
        query = query.filter(Resource.status == status)
    results = query.order_by(Resource.created_at.desc(), Resource.id.desc()).all()
    return jsonify([resource.to_dict() for resource in results])


@app.route("/resources", methods=["POST"])
@role_required(ROLE_WORKER, ROLE_ADMIN)
def resource_create():
    data = load(ResourceIn, request.get_json(silent=True))

    organization_id = data.organization_id or current_user.organization_id
    if organization_id is None:
        raise ValidationError("You must belong to an organization to register resources")
    organization = get_or_404(Organization, organization_id, "Organization")
    if not (current_user.has_role(ROLE_ADMIN) or organization.is_member(current_user)):
        raise Forbidden("You are not a member of this organization")

    resource = Resource(
        type=data.type,
        quantity=data.quantity,
        latitude=data.location.lat,
        longitude=data.location.lng,
        status=data.status,
        organization_id=organization.id,
    )
    db.session.add(resource)
    db.session.commit()

    return jsonify(resource.to_dict()), 201


@app.route("/resources", methods=["PATCH"])
@role_required(ROLE_WORKER, ROLE_ADMIN)
def resource_update_status():
    data = load(ResourceStatusIn, request.get_json(silent=True))
    resource = get_or_404(Resource, data.resource_id, "Resource")
    if not (current_user.has_role(ROLE_ADMIN) or resource.organization.is_member(current_user)):
        raise Forbidden("You are not a member of this organization")

    resource.status = data.status
    db.session.commit()

    return jsonify(resource.to_dict())


@app.route("/resources/dispatch", methods=["POST"])
@role_required(ROLE_WORKER, ROLE_ADMIN)
@workflow_required(WORKFLOW_STOCK)
def resource_dispatch():
    """Take a pending need on behalf of the caller's organization"""
    data = load(AssignIn, request.get_json(silent=True))
    need = need_lifecycle.assign(data.need_id, data.eta, organization=acting_user().organization)
    return jsonify({"message": "Resources dispatched successfully", "need": need.to_dict()})


# ---------- Dashboard ----------
def build_dashboard_summary():
    """
    Aggregate counts for the dashboard view

    Returns:
        dict with need counts by status/urgency/type, open dispatch totals, stock levels and recent needs
    """
    workflow = app.config["NEED_WORKFLOW"]

    by_status = {status: 0 for status in WORKFLOW_LADDERS[workflow]}
    for status, count in db.session.query(Need.status, func.count(Need.id)).group_by(Need.status).all():
        by_status[status] = count

    by_urgency = {level: 0 for level in URGENCY_LEVELS}
    for urgency, count in db.session.query(Need.urgency, func.count(Need.id)).group_by(Need.urgency).all():
        by_urgency[urgency] = count

    by_type = {need_type: 0 for need_type in NEED_TYPES}
    for need_type, count in db.session.query(Need.type, func.count(Need.id)).group_by(Need.type).all():
        by_type[need_type] = count

    open_count, in_transit = db.session.query(
        func.count(Dispatch.id),
        func.coalesce(func.sum(Dispatch.resource_amount), 0)
    ).filter(Dispatch.status == DISPATCH_DISPATCHED).one()

    recent = Need.query.order_by(Need.created_at.desc(), Need.id.desc()).limit(5).all()

    return {
        "workflow": workflow,
        "needs": {
            "total": sum(by_status.values()),
            "byStatus": by_status,
            "byUrgency": by_urgency,
            "byType": by_type,
        },
        "dispatches": {
            "open": open_count,
            "inTransitAmount": int(in_transit),
        },
        "stock": stock_listing(),
        "recentNeeds": [
            {**need.to_dict(), "reportedAgo": format_relative_time(need.created_at)}
            for need in recent
        ],
    }


@app.route("/dashboard")
@login_required
def dashboard():
    return jsonify(build_dashboard_summary())


# ---------- CLI for DB ----------
@app.cli.command("init-db")
def init_db():
    db.create_all()
    print("Database initialized.")


@app.cli.command("create-admin")
@click.option("--email", prompt="Enter admin email")
@click.option("--name", prompt="Enter full name")
@click.option("--password", prompt="Enter password", hide_input=True, confirmation_prompt=True)
def create_admin(email, name, password):
    """Create an admin user for the system"""
    email = email.strip().lower()
    name = name.strip()
    if not email:
        print("Error: Email cannot be empty")
        return
    if not name:
        print("Error: Full name cannot be empty")
        return

    existing = User.query.filter_by(email=email).first()
    if existing:
        print(f"Error: User with email '{email}' already exists")
        return

    if len(password) < 8:
        print("Error: Password must be at least 8 characters")
        return

    admin = User(email=email, name=name, role=ROLE_ADMIN)
    admin.set_password(password)
    db.session.add(admin)
    db.session.commit()

    print(f"\n✓ Admin user '{name}' created successfully!")
    print(f"  Email: {email}")
    print("  Role: Administrator\n")


@app.cli.command("migrate-workflow-statuses")
@click.option("--to", "to_workflow", type=click.Choice([WORKFLOW_STOCK, WORKFLOW_DISPATCH]), required=True,
              help="Workflow whose status ladder existing needs should use")
def migrate_workflow_statuses(to_workflow):
    """Move existing need statuses onto another workflow's status ladder"""
    from_workflow = WORKFLOW_STOCK if to_workflow == WORKFLOW_DISPATCH else WORKFLOW_DISPATCH
    count = need_lifecycle.migrate_need_statuses(from_workflow, to_workflow)

    if not count:
        print("✓ No needs to migrate. Database is up to date.")
        return
    print(f"✓ Migrated {count} need(s) from the {from_workflow} to the {to_workflow} workflow.")
    if app.config["NEED_WORKFLOW"] != to_workflow:
        print(f"  Remember to set NEED_WORKFLOW={to_workflow} before restarting the service.")


if __name__ == "__main__":
    with app.app_context():
        db.create_all()
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)), debug=True)
