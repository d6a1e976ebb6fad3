from carpark.db.base import Base
from carpark.db.session import engine, SessionLocal
from carpark.models.lot import Lot, LotPricing, VehicleType
from carpark.models.service import LotService, Service, ServiceCategory

SIZES = ("small", "medium", "large", "xlarge")

VEHICLE_TYPES = [
    ("small", "Lítill (S)", "Small (S)", 1),
    ("medium", "Meðal (M)", "Medium (M)", 2),
    ("large", "Stór (L)", "Large (L)", 3),
    ("xlarge", "Mjög stór (XL)", "Extra Large (XL)", 4),
]

CATEGORIES = [
    ("charging", "Hleðsla", "Charging", 1),
    ("cleaning", "Þrif", "Cleaning", 2),
    ("deep_cleaning", "Djúphreinsun", "Deep Cleaning", 3),
    ("leather", "Leðurmeðferð", "Leather Care", 4),
    ("detailing", "Smáatriði", "Detailing", 5),
    ("coating", "COAT", "Coating", 6),
    ("polishing", "Mössun", "Polishing", 7),
]

# code, category, name, name_en, prices per size (S, M, L, XL)
SERVICES = [
    ("ev_charge", "charging", "Hleðsla á Rafbíl", "Electric Vehicle Charging", (3500, 3500, 3500, 3500)),
    ("general_clean", "cleaning", "Alþrif", "General Cleaning", (17500, 21000, 24000, 28500)),
    ("exterior_wash", "cleaning", "Þvottur að utan", "Exterior Washing", (11000, 13000, 15000, 15000)),
    ("interior_clean", "cleaning", "Ryksugun og þrif að innan", "Interior Cleaning", (11000, 13000, 14000, 15000)),
    ("deep_clean_seats", "deep_cleaning", "Djúphreinsun sæta", "Deep Cleaning of Seats", (11000, 13000, 15000, 15000)),
    ("leather_seats", "leather", "Leður hreinsun á sætum", "Leather Seat Cleaning", (12000, 14000, 16000, 18000)),
    ("hand_wax", "detailing", "Handbón", "Hand Wax", (5000, 6000, 7000, 8000)),
    ("rim_wash", "detailing", "Felguþvottur", "Rim Washing", (5500, 6000, 6500, 7000)),
    ("coat_body", "coating", "COAT á yfirbyggingu", "COAT on Bodywork", (25000, 35000, 40000, 45000)),
    ("m1_polish", "polishing", "M1 mössun á lakki", "M1 Polish", (55000, 65000, 70000, 85000)),
]

PRICE_PER_DAY = 600


def _get_or_create(db, model, lookup: dict, **values):
    instance = db.query(model).filter_by(**lookup).first()
    if instance is None:
        instance = model(**lookup, **values)
        db.add(instance)
    else:
        for field, value in values.items():
            setattr(instance, field, value)
    db.flush()
    return instance


def seed_reference_data():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        vehicle_types = {
            code: _get_or_create(db, VehicleType, {"code": code}, name=name, name_en=name_en, sort_order=order)
            for code, name, name_en, order in VEHICLE_TYPES
        }
        print("Vehicle types:", ", ".join(vehicle_types))

        lot = db.query(Lot).filter(Lot.slug == "kef-main").first()
        if lot is None:
            lot = Lot(name="KEF Bílastæði", name_en="KEF Parking", slug="kef-main", total_spaces=200, is_active=True)
            db.add(lot)
            db.flush()
        print(f"Lot: {lot.name} ({lot.total_spaces} spaces)")

        for vehicle_type in vehicle_types.values():
            active = db.query(LotPricing).filter(
                LotPricing.lot_id == lot.id,
                LotPricing.vehicle_type_id == vehicle_type.id,
                LotPricing.is_active == True,  # noqa: E712
            ).first()
            if active is None:
                db.add(LotPricing(
                    lot_id=lot.id, vehicle_type_id=vehicle_type.id, price_per_day=PRICE_PER_DAY, is_active=True,
                ))

        categories = {
            code: _get_or_create(
                db, ServiceCategory, {"code": code}, name=name, name_en=name_en, icon=code, sort_order=order,
            )
            for code, name, name_en, order in CATEGORIES
        }

        for order, (code, category, name, name_en, prices) in enumerate(SERVICES, start=1):
            service = _get_or_create(
                db, Service, {"code": code},
                category_id=categories[category].id, name=name, name_en=name_en, sort_order=order,
            )
            for size, price in zip(SIZES, prices):
                _get_or_create(
                    db, LotService,
                    {"lot_id": lot.id, "service_id": service.id, "vehicle_type_id": vehicle_types[size].id},
                    price=price,
                )
        print(f"Services: {len(SERVICES)} in {len(CATEGORIES)} categories")

        db.commit()
        print("Reference data seeded.")
    finally:
        db.close()


if __name__ == "__main__":
    seed_reference_data()
