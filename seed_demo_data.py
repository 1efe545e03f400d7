"""
Seed Demo Data — standalone script.

Creates the schema if needed, then inserts three demo cohorts, six subjects,
the school settings, three students plus one admin, a small weekly schedule
and the study-mode / failure-reason registries. Running it again changes
nothing: every record is looked up by its natural key first.

Usage:
    python seed_demo_data.py
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime

from werkzeug.security import generate_password_hash

from entities import DEFAULT_FAILURE_REASONS, DEFAULT_STUDY_MODES

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "12345678"

DEMO_COHORTS = [
    {"id": "c1", "name": "Turma INSS 2024"},
    {"id": "c2", "name": "Turma Receita Federal"},
    {"id": "c3", "name": "Turma Polícia Federal"},
]

DEMO_SUBJECTS = [
    {"name": "Português", "color": "#3b82f6"},
    {"name": "Raciocínio Lógico", "color": "#f59e0b"},
    {"name": "Direito Constitucional", "color": "#10b981"},
    {"name": "Informática", "color": "#8b5cf6"},
    {"name": "Contabilidade Geral", "color": "#ef4444"},
    {"name": "Direito Administrativo", "color": "#06b6d4"},
]

DEMO_SETTINGS = {
    "school_name": "Concursos DPA",
    "instructor_name": "Isaac",
    "phone": "(11) 99999-9999",
    "email": "contato@concursosdpa.com.br",
    "welcome_message": "Bem-vindo à plataforma de estudos de alto rendimento.",
    "whatsapp_link": "https://chat.whatsapp.com/ExemploDeGrupo",
}

DEMO_USERS = [
    {"id": "s1", "name": "Alice Silva", "email": "alice@example.com", "role": "student",
     "cohort": "c1", "status": "active"},
    {"id": "s2", "name": "Bob Santos", "email": "bob@example.com", "role": "student",
     "cohort": "c1", "status": "pending"},
    {"id": "s3", "name": "Carlos Lima", "email": "carlos@example.com", "role": "student",
     "cohort": "c1", "status": "active"},
    {"id": "adm1", "name": "Admin Isaac", "email": None, "role": "admin",
     "cohort": None, "status": "active"},
]

DEMO_TASKS = [
    {"cohort": "c1", "subject": "Português", "mode": "Video", "duration": 120,
     "day": "Monday", "description": "Assistir aula sobre Crase e Regência Verbal."},
    {"cohort": "c1", "subject": "Raciocínio Lógico", "mode": "Questions", "duration": 60,
     "day": "Monday", "description": "Resolver 20 questões da banca Cebraspe."},
    {"cohort": "c1", "subject": "Direito Constitucional", "mode": "Reading", "duration": 90,
     "day": "Tuesday", "description": "Ler PDF Aula 03: Direitos Fundamentais."},
    {"cohort": "c1", "subject": "Informática", "mode": "Review", "duration": 45,
     "day": "Tuesday", "description": "Revisar atalhos do Windows."},
    {"cohort": "c2", "subject": "Contabilidade Geral", "mode": "Video", "duration": 120,
     "day": "Monday", "description": "Introdução ao Balanço Patrimonial"},
    {"cohort": "c1", "student": "s1", "subject": "Mentoria Individual", "mode": "Review",
     "duration": 30, "day": "Friday", "description": "Revisão de pontos fracos."},
]


def _get_or_create(db, table: str, key: str, value, values: dict) -> int:
    """Return the id of the row where ``key = value``, inserting ``values`` if missing."""
    row = db.execute(f"SELECT id FROM {table} WHERE {key} = ?", (value,)).fetchone()
    if row:
        return row["id"]
    cols = ", ".join(values)
    marks = ", ".join("?" for _ in values)
    try:
        cur = db.execute(f"INSERT INTO {table} ({cols}) VALUES ({marks})", tuple(values.values()))
    except sqlite3.IntegrityError:
        # Created concurrently; treat as already present
        row = db.execute(f"SELECT id FROM {table} WHERE {key} = ?", (value,)).fetchone()
        return row["id"]
    return cur.lastrowid


def seed(db, admin_email: str = "admin@escola.com", admin_password: str = "Admin12345") -> dict:
    """Seed demo data into the database. Returns summary dict.

    ``id_map`` translates the human-readable seed ids (``c1``, ``s1``...) to
    the generated row ids.
    """
    now = datetime.now().isoformat()
    id_map: dict[str, int] = {}
    tasks_created = 0

    for cohort in DEMO_COHORTS:
        id_map[cohort["id"]] = _get_or_create(
            db, "cohorts", "name", cohort["name"], {"name": cohort["name"], "created_at": now},
        )

    for subject in DEMO_SUBJECTS:
        _get_or_create(db, "subjects", "name", subject["name"], {**subject, "created_at": now})

    if db.execute("SELECT 1 FROM settings LIMIT 1").fetchone() is None:
        cols = ", ".join(DEMO_SETTINGS)
        marks = ", ".join("?" for _ in DEMO_SETTINGS)
        db.execute(f"INSERT INTO settings ({cols}) VALUES ({marks})", tuple(DEMO_SETTINGS.values()))

    student_hash = generate_password_hash(DEMO_PASSWORD)
    for user in DEMO_USERS:
        is_admin = user["role"] == "admin"
        email = (admin_email if is_admin else user["email"]).strip().lower()
        id_map[user["id"]] = _get_or_create(db, "users", "email", email, {
            "name": user["name"],
            "email": email,
            "password_hash": generate_password_hash(admin_password) if is_admin else student_hash,
            "role": user["role"],
            "status": user["status"],
            "cohort_id": id_map.get(user["cohort"]) if user["cohort"] else None,
            "created_at": now,
        })

    for task in DEMO_TASKS:
        cohort_id = id_map[task["cohort"]]
        student_id = id_map.get(task["student"]) if task.get("student") else None
        exists = db.execute(
            "SELECT 1 FROM tasks WHERE cohort_id = ? AND student_id IS ? "
            "AND subject = ? AND day_of_week = ?",
            (cohort_id, student_id, task["subject"], task["day"]),
        ).fetchone()
        if exists:
            continue
        db.execute(
            "INSERT INTO tasks (cohort_id, student_id, subject, mode, duration_minutes, "
            "day_of_week, description, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (cohort_id, student_id, task["subject"], task["mode"], task["duration"],
             task["day"], task["description"], now),
        )
        tasks_created += 1

    for table, defaults in (("study_modes", DEFAULT_STUDY_MODES),
                            ("failure_reasons", DEFAULT_FAILURE_REASONS)):
        for item in defaults:
            _get_or_create(db, table, "label", item["label"], dict(item))

    db.commit()
    logger.info("Seeded demo data: %d cohorts, %d new tasks", len(DEMO_COHORTS), tasks_created)

    return {
        "cohorts": len(DEMO_COHORTS),
        "subjects": len(DEMO_SUBJECTS),
        "users": len(DEMO_USERS),
        "tasks_created": tasks_created,
        "id_map": id_map,
    }


if __name__ == "__main__":
    from app import create_app
    from database import get_db, init_db, run_migrations

    app = create_app()
    with app.app_context():
        init_db()
        run_migrations()
        result = seed(
            get_db(),
            admin_email=app.config["SEED_ADMIN_EMAIL"],
            admin_password=app.config["SEED_ADMIN_PASSWORD"],
        )
        print(f"[Seed] Done: {result}")
