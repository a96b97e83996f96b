"""
Seed script — creates a staff roster across departments and registers demo
patients through the normal registration workflow, so each patient gets its
initial medical record.

Run from the backend directory:
    python -m carebase.seed
"""
import asyncio
import random
from datetime import date, timedelta

from carebase.db.postgres import engine, Base, get_db_client
import carebase.models  # noqa: F401
from carebase.models.staff import StaffStatus
from carebase.services.patient_mapping import PatientFormValues
from carebase.services.patient_service import create_patient
from carebase.services.staff_service import StaffMember, StaffService

random.seed(42)

# ─────────────────────────────────────────────────────────────────────
#  Reference data arrays
# ─────────────────────────────────────────────────────────────────────

FIRST_NAMES = [
    "Amira", "Omar", "Sara", "Yusuf", "Lina", "Karim", "Hala", "Sami",
    "Mona", "Tariq", "Nadia", "Fadi", "Reem", "Bilal", "Dina", "Hassan",
]
LAST_NAMES = [
    "Haddad", "Khalil", "Nasser", "Saleh", "Mansour", "Darwish", "Hamdan",
    "Odeh", "Jaber", "Yassin", "Taha", "Barakat",
]
DEPARTMENT_ROLES = {
    "Cardiology": ["Doctor", "Nurse", "Technician"],
    "Emergency": ["Doctor", "Nurse", "Paramedic"],
    "Pediatrics": ["Doctor", "Nurse"],
    "Radiology": ["Radiologist", "Technician"],
    "Administration": ["Receptionist", "Administrator"],
}
STAFF_STATUS_WEIGHTS = [
    (StaffStatus.ACTIVE, 80),
    (StaffStatus.INACTIVE, 12),
    (StaffStatus.ON_LEAVE, 8),
]
BLOOD_TYPES = ["O+", "O-", "A+", "A-", "B+", "B-", "AB+", "AB-", "unknown"]
CONDITIONS = ["Hypertension", "Type 2 diabetes", "Asthma", "", "", ""]
MEDICATIONS = ["Lisinopril 10mg", "Metformin 500mg", "Albuterol inhaler", "", ""]
ALLERGIES = ["Penicillin", "Latex", "Peanuts", "Sulfa drugs"]
INSURERS = ["BlueCross", "Aetna", "Cigna", "UnitedHealthcare"]
CITIES = [("Springfield", "IL", "62701"), ("Madison", "WI", "53703"), ("Dayton", "OH", "45402")]


def _phone() -> str:
    return f"555-{random.randint(100, 999)}-{random.randint(1000, 9999)}"


def _staff_roster(count: int) -> list[StaffMember]:
    statuses = [s for s, _ in STAFF_STATUS_WEIGHTS]
    weights = [w for _, w in STAFF_STATUS_WEIGHTS]
    roster = []
    for i in range(count):
        department = random.choice(list(DEPARTMENT_ROLES))
        first, last = random.choice(FIRST_NAMES), random.choice(LAST_NAMES)
        roster.append(StaffMember(
            first_name=first,
            last_name=last,
            role=random.choice(DEPARTMENT_ROLES[department]),
            department=department,
            email=f"{first.lower()}.{last.lower()}.{i}@carebase.example",
            phone=_phone(),
            joining_date=date.today() - timedelta(days=random.randint(30, 3650)),
            status=random.choices(statuses, weights)[0],
        ))
    return roster


def _patient_form(i: int) -> PatientFormValues:
    first, last = random.choice(FIRST_NAMES), random.choice(LAST_NAMES)
    city, state, zip_code = random.choice(CITIES)
    has_allergies = random.random() < 0.3
    has_insurance = random.random() < 0.6
    return PatientFormValues(
        first_name=first,
        last_name=last,
        date_of_birth=date(random.randint(1940, 2015), random.randint(1, 12), random.randint(1, 28)),
        gender=random.choice(["male", "female"]),
        address=f"{random.randint(1, 999)} Main Street",
        phone=_phone(),
        email=f"patient{i}@example.com",
        city=city,
        state=state,
        zip_code=zip_code,
        blood_type=random.choice(BLOOD_TYPES),
        has_allergies=has_allergies,
        allergies=random.sample(ALLERGIES, k=random.randint(1, 2)) if has_allergies else [],
        chronic_conditions=random.choice(CONDITIONS),
        current_medications=random.choice(MEDICATIONS),
        contact_name=f"{random.choice(FIRST_NAMES)} {last}",
        relationship=random.choice(["spouse", "parent", "sibling", "child"]),
        contact_phone=_phone(),
        has_insurance=has_insurance,
        insurance_provider=random.choice(INSURERS) if has_insurance else None,
        insurance_id=f"INS-{random.randint(100000, 999999)}" if has_insurance else None,
        group_number=f"GRP-{random.randint(1000, 9999)}" if has_insurance else None,
        policy_holder_name=f"{first} {last}" if has_insurance else None,
        relationship_to_patient="self" if has_insurance else None,
    )


async def seed(staff_count: int = 40, patient_count: int = 25):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    client = await get_db_client()
    staff_service = StaffService(client)
    for member in _staff_roster(staff_count):
        await staff_service.create(member)

    outcomes: dict[str, int] = {}
    for i in range(patient_count):
        result = await create_patient(client, _patient_form(i))
        key = result.seed_record.status.value if result.success else "patient_failed"
        outcomes[key] = outcomes.get(key, 0) + 1

    stats = await staff_service.stats()
    print("=" * 70)
    print(f"  Staff:     {stats.total} (active {stats.active}, inactive {stats.inactive}, on leave {stats.on_leave})")
    print(f"  Patients:  {patient_count}")
    for key, count in sorted(outcomes.items()):
        print(f"    {key:20s} {count}")
    print("=" * 70)

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
