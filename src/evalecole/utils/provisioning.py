"""Schema provisioning and demo seed data.

When the relational store reports NEEDS_PROVISIONING, the setup endpoint
hands ``SETUP_SQL_SCRIPT`` to an operator, who runs it in the database's SQL
editor. ``provision_database`` is the command-line equivalent for databases
SQLAlchemy can reach directly. The application itself never runs either.
"""

import logging
from typing import List

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from evalecole.schemas.class_schema import ClassGroup
from evalecole.schemas.user import User, UserRole
from evalecole.utils.converters import class_to_model, user_to_model

logger = logging.getLogger(__name__)

GRADES = [("6", "6ème"), ("5", "5ème"), ("4", "4ème"), ("3", "3ème")]
LETTERS = ["A", "B", "C", "D", "E", "F"]


def seed_classes() -> List[ClassGroup]:
    """The 24 classes of the school, 6ème A to 3ème F."""
    return [
        ClassGroup(id=f"c{level}{letter.lower()}", name=f"{label} {letter}")
        for level, label in GRADES
        for letter in LETTERS
    ]


def seed_users() -> List[User]:
    """Administrator plus one demo user per role family.

    Adults never log in, so they carry no credentials.
    """
    return [
        User(id="u1", full_name="Administrateur", username="Paul",
             password="Paul2025.", role=UserRole.ADMIN),
        User(id="prof1", full_name="M. Dupont", role=UserRole.TEACHER,
             assigned_class_ids=["c6a", "c6b"]),
        User(id="prof2", full_name="Mme Durand", role=UserRole.TEACHER,
             assigned_class_ids=["c6a"]),
        User(id="surv1", full_name="Mme La Surveillante", role=UserRole.SUPERVISOR),
        User(id="dir1", full_name="M. Le Directeur", role=UserRole.DIRECTION),
        User(id="eleve1", full_name="Lucas", username="eleve1", password="123",
             role=UserRole.STUDENT, class_id="c6a"),
    ]


SETUP_SQL_SCRIPT = """-- 1. Nettoyage (au cas où)
drop table if exists public.events;
drop table if exists public.users;
drop table if exists public.classes;

-- 2. Création des tables
create table public.classes (
  id text primary key,
  name text not null
);

create table public.users (
  id text primary key,
  full_name text not null,
  username text,
  password text,
  role text not null,
  active boolean default true,
  class_id text,
  assigned_class_ids json
);

create table public.events (
  id text primary key,
  date_time text not null,
  created_by_id text not null,
  student_id text,
  target_user_id text not null,
  action_id text,
  custom_label text,
  points integer not null
);

-- 3. OUVERTURE DES DROITS (IMPORTANT)
alter table public.classes disable row level security;
alter table public.users disable row level security;
alter table public.events disable row level security;

-- 4. Données de démarrage
insert into public.users (id, full_name, username, password, role, active)
values ('u1', 'Administrateur', 'Paul', 'Paul2025.', 'Admin', true);

insert into public.classes (id, name) values
('c6a', '6ème A'), ('c6b', '6ème B'), ('c6c', '6ème C'), ('c6d', '6ème D'), ('c6e', '6ème E'), ('c6f', '6ème F'),
('c5a', '5ème A'), ('c5b', '5ème B'), ('c5c', '5ème C'), ('c5d', '5ème D'), ('c5e', '5ème E'), ('c5f', '5ème F'),
('c4a', '4ème A'), ('c4b', '4ème B'), ('c4c', '4ème C'), ('c4d', '4ème D'), ('c4e', '4ème E'), ('c4f', '4ème F'),
('c3a', '3ème A'), ('c3b', '3ème B'), ('c3c', '3ème C'), ('c3d', '3ème D'), ('c3e', '3ème E'), ('c3f', '3ème F');

insert into public.users (id, full_name, role, active, assigned_class_ids) values
('prof1', 'M. Dupont', 'Professeur', true, '["c6a", "c6b"]'),
('prof2', 'Mme Durand', 'Professeur', true, '["c6a"]');

insert into public.users (id, full_name, username, password, role, active, class_id)
values ('eleve1', 'Lucas', 'eleve1', '123', 'Élève', true, 'c6a');

insert into public.users (id, full_name, role, active) values
('dir1', 'M. Le Directeur', 'Direction', true),
('surv1', 'Mme La Surveillante', 'Surveillant', true);
"""


def provision_database(engine: Engine, seed: bool = True) -> None:
    """Create the tables and, optionally, insert the demo seed.

    Existing rows with the same ids are overwritten, so running it twice is
    harmless.

    Args:
        engine: Engine of the database to provision.
        seed: Whether to insert the demo users and classes.
    """
    # Importing the database module builds the configured engine
    from evalecole.core.database import init_db

    init_db(bind=engine)
    logger.info("Created tables on %s", engine.url.render_as_string(hide_password=True))
    if not seed:
        return

    session_factory = sessionmaker(bind=engine, autoflush=False)
    db = session_factory()
    try:
        for class_group in seed_classes():
            db.merge(class_to_model(class_group))
        for user in seed_users():
            db.merge(user_to_model(user))
        db.commit()
    finally:
        db.close()
    logger.info("Inserted seed data: %d classes, %d users", len(seed_classes()), len(seed_users()))
