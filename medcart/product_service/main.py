# medcart/product_service/main.py
from fastapi import FastAPI, HTTPException

app = FastAPI(title="Product Service (dev mock)")


PRODUCTS = {
    "atorvastatin": {
        "id": "atorvastatin", "name": "Atorvastatin", "brand": "Lipitor",
        "generic_name": "atorvastatin calcium", "product_type": "prescription",
        "category": "Cardiovascular", "prescription_required": True,
        "insurance_covered": True,
        "dosages": {"10mg": 18.99, "20mg": 24.99, "40mg": 32.99},
    },
    "metformin": {
        "id": "metformin", "name": "Metformin", "brand": "Glucophage",
        "generic_name": "metformin hydrochloride", "product_type": "prescription",
        "category": "Endocrinology", "prescription_required": True,
        "insurance_covered": True,
        "dosages": {"500mg": 12.49, "1000mg": 16.99},
    },
    "coq10": {
        "id": "coq10", "name": "CoQ10", "product_type": "supplement",
        "category": "Supplements", "dosages": {"100mg": 29.99},
    },
    "omega3": {
        "id": "omega3", "name": "Omega-3", "product_type": "supplement",
        "category": "Supplements", "dosages": {"1000mg": 24.99},
    },
    "bp_monitor": {
        "id": "bp_monitor", "name": "Digital Blood Pressure Monitor",
        "product_type": "device", "category": "Devices", "dosages": {"": 79.99},
    },
}


@app.get("/products/{product_id}")
def get_product(product_id: str, dosage: str = ""):
    product = PRODUCTS.get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    dosages = product["dosages"]
    if dosage not in dosages:
        if dosage or len(dosages) != 1:
            raise HTTPException(status_code=404, detail="Dosage not found")
        dosage = next(iter(dosages))

    data = {k: v for k, v in product.items() if k != "dosages"}
    data["dosage"] = dosage
    data["price"] = dosages[dosage]
    return data
