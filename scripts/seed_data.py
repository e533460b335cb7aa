# scripts/seed_data.py

import os
import sys
import logging
import random
from datetime import timedelta

from dotenv import load_dotenv
from sqlalchemy import create_engine, delete
from sqlalchemy.orm import sessionmaker, Session

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from edupeer.models import (Base, LearningSession, PairingRequest,
                            SessionParticipant, User, utcnow)
from edupeer.security import hash_password

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
_ = load_dotenv()

# =================================================================================
# --- PERSONAS WITH COMPLEMENTARY SKILLS ---
# =================================================================================

PERSONAS = {
    "priya": {"fullname": "Priya Patel", "teach": ["Python", "SQL"], "learn": ["Spanish", "Guitar"]},
    "mateo": {"fullname": "Mateo Garcia", "teach": ["Spanish", "Guitar"], "learn": ["Python"]},
    "leo": {"fullname": "Leo Chen", "teach": ["Mandarin", "Photography"], "learn": ["SQL", "Spanish"]},
    "sam": {"fullname": "Sam Jones", "teach": ["Photography"], "learn": []},
}

SKILL_POOL = [
    "Python", "SQL", "Spanish", "Guitar", "Mandarin", "Photography",
    "Public Speaking", "Piano", "Drawing", "French", "Cooking", "React",
]

NUM_EXTRA_USERS = 20

# =================================================================================

def clear_data(session: Session):
    logging.info("Clearing existing data...")
    for model in (SessionParticipant, LearningSession, PairingRequest, User):
        session.execute(delete(model))
    session.commit()
    logging.info("Data cleared successfully.")

def random_skill_lists():
    picked = random.sample(SKILL_POOL, k=random.randint(2, 6))
    split = random.randint(1, len(picked) - 1)
    return picked[:split][:5], picked[split:][:5]

def seed_data():
    db_url = os.getenv("DATABASE_URL")
    if not db_url:
        logging.error("DATABASE_URL environment variable not set.")
        return

    engine = create_engine(db_url)
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()

    try:
        clear_data(session)
        hashed_password = hash_password("password")

        # 1. Seed Specific Personas
        logging.info("--- Seeding Personas ---")
        users = {}
        for username, persona in PERSONAS.items():
            user = User(
                username=username, password_hash=hashed_password,
                fullname=persona["fullname"], display_name=persona["fullname"],
                teach_skills=persona["teach"], learn_skills=persona["learn"],
            )
            session.add(user)
            users[username] = user
            logging.info(f"Created Persona: {user.fullname} teaches {persona['teach']} learns {persona['learn']}")
        session.commit()

        # 2. Seed additional users so the match list has some depth
        logging.info("--- Seeding Additional Users ---")
        for i in range(NUM_EXTRA_USERS):
            teach, learn = random_skill_lists()
            session.add(User(
                username=f"user{i + 1}", password_hash=hashed_password,
                fullname=f"User {i + 1}", display_name=f"User {i + 1}",
                teach_skills=teach, learn_skills=learn,
            ))
        session.commit()

        # 3. One accepted request with a scheduled session, one still pending
        logging.info("--- Seeding Pairing Requests and Sessions ---")
        accepted = PairingRequest(
            requester_id=users["priya"].id, recipient_id=users["mateo"].id,
            teach_skills=["Python"], learn_skills=["Spanish"],
            message="Python for Spanish?", status="accepted",
        )
        pending = PairingRequest(
            requester_id=users["leo"].id, recipient_id=users["priya"].id,
            teach_skills=["Mandarin"], learn_skills=["SQL"], status="pending",
        )
        session.add_all([accepted, pending])
        session.flush()

        session.add(LearningSession(
            request_id=accepted.id,
            scheduled_date=utcnow() + timedelta(days=3),
            duration=60, location="online", status="scheduled",
            participants=[
                SessionParticipant(user_id=accepted.requester_id),
                SessionParticipant(user_id=accepted.recipient_id),
            ],
        ))
        session.commit()
        logging.info("Seeding complete.")

    except Exception as e:
        logging.error(f"An error occurred: {e}", exc_info=True)
        session.rollback()
    finally:
        session.close()

if __name__ == "__main__":
    seed_data()
