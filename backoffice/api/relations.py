"""
API: Relaciones
Clientes y proveedores
"""
from flask import Blueprint, request, jsonify
from ..db import db
from ..models import Relation
from ..services.audit import log_action, actor_name
from .auth import permission_required

bp = Blueprint("relations", __name__)


RELATION_TYPES = ("client", "supplier", "both")
EDITABLE_FIELDS = (
    "name", "type", "relation_type", "phone", "email", "country", "province",
    "street_address", "details", "code", "payment_type", "status",
)


def _build_relation(data):
    name = (data.get("name") or "").strip()
    if not name:
        raise ValueError("El nombre es obligatorio")

    relation_type = data.get("relation_type", "client")
    if relation_type not in RELATION_TYPES:
        raise ValueError(f"Tipo de relación inválido: {relation_type}")

    relation = Relation(
        name=name,
        type=data.get("type", "company"),
        relation_type=relation_type,
        phone=data.get("phone"),
        email=data.get("email"),
        country=data.get("country"),
        province=data.get("province"),
        street_address=data.get("street_address"),
        details=data.get("details"),
        code=data.get("code"),
        payment_type=data.get("payment_type", "cash"),
        status=data.get("status", "active"),
        created_by=actor_name(),
    )
    db.session.add(relation)
    return relation


@bp.route("", methods=["GET"])
@permission_required("relations:read")
def get_relations():
    """Lista relaciones (filtros: search, relation_type, status)"""
    search = request.args.get("search", "").strip()
    relation_type = request.args.get("relation_type")
    status = request.args.get("status")

    query = Relation.query

    if search:
        query = query.filter(
            db.or_(
                Relation.name.ilike(f"%{search}%"),
                Relation.phone.ilike(f"%{search}%"),
                Relation.code.ilike(f"%{search}%"),
            )
        )

    # "client" incluye a los que son ambos
    if relation_type in ("client", "supplier"):
        query = query.filter(Relation.relation_type.in_([relation_type, "both"]))
    elif relation_type == "both":
        query = query.filter_by(relation_type="both")

    if status:
        query = query.filter_by(status=status)

    relations = query.order_by(Relation.name).all()
    return jsonify([r.to_dict() for r in relations])


@bp.route("/search", methods=["GET"])
@permission_required("relations:read")
def search_relations():
    """Búsqueda rápida para autocompletar (máx 20)"""
    q = request.args.get("q", "").strip()
    if not q:
        return jsonify([])

    relations = Relation.query.filter(
        Relation.status == "active",
        Relation.name.ilike(f"%{q}%"),
    ).order_by(Relation.use_count.desc(), Relation.name).limit(20).all()

    return jsonify([{"id": r.id, "name": r.name, "relation_type": r.relation_type} for r in relations])


@bp.route("/<id>", methods=["GET"])
@permission_required("relations:read")
def get_relation(id):
    relation = Relation.query.get_or_404(id)
    return jsonify(relation.to_dict())


@bp.route("", methods=["POST"])
@permission_required("relations:create")
def create_relation():
    """Crea una relación"""
    data = request.json or {}

    relation = _build_relation(data)
    db.session.flush()
    log_action("CREATE", "relation", relation.id, f"Relación {relation.name} creada")
    db.session.commit()

    return jsonify(relation.to_dict()), 201


@bp.route("/bulk", methods=["POST"])
@permission_required("relations:create")
def create_relations():
    """Crea varias relaciones en una sola operación (todo o nada)"""
    items = (request.json or {}).get("relations") or []
    if not items:
        return jsonify({"success": False, "error": "No hay relaciones para crear"}), 400

    relations = [_build_relation(item) for item in items]
    db.session.flush()
    log_action("CREATE", "relation", None, f"{len(relations)} relaciones creadas")
    db.session.commit()

    return jsonify({"success": True, "relations": [r.to_dict() for r in relations]}), 201


@bp.route("/<id>", methods=["PUT"])
@permission_required("relations:update")
def update_relation(id):
    relation = Relation.query.get_or_404(id)
    data = request.json or {}

    if "relation_type" in data and data["relation_type"] not in RELATION_TYPES:
        raise ValueError(f"Tipo de relación inválido: {data['relation_type']}")

    for field in EDITABLE_FIELDS:
        if field in data:
            setattr(relation, field, data[field])

    log_action("UPDATE", "relation", relation.id, f"Relación {relation.name} actualizada")
    db.session.commit()

    return jsonify(relation.to_dict())


@bp.route("/<id>", methods=["DELETE"])
@permission_required("relations:delete")
def delete_relation(id):
    """Elimina una relación sin movimientos"""
    relation = Relation.query.get_or_404(id)

    if (relation.use_count or 0) > 0:
        return jsonify({"success": False, "error": "No se puede eliminar, la relación tiene transacciones"}), 400

    db.session.delete(relation)
    log_action("DELETE", "relation", id, f"Relación {relation.name} eliminada")
    db.session.commit()

    return jsonify({"success": True, "message": "Relación eliminada"})


@bp.route("/bulk-delete", methods=["POST"])
@permission_required("relations:delete")
def delete_relations():
    """Elimina varias relaciones; las que tienen movimientos se omiten"""
    ids = (request.json or {}).get("ids") or []

    deleted, skipped = [], []
    for relation in Relation.query.filter(Relation.id.in_(ids)).all():
        if (relation.use_count or 0) > 0:
            skipped.append(relation.id)
            continue
        db.session.delete(relation)
        deleted.append(relation.id)

    if deleted:
        log_action("DELETE", "relation", None, f"{len(deleted)} relaciones eliminadas")
    db.session.commit()

    return jsonify({"success": True, "deleted": deleted, "skipped": skipped})
