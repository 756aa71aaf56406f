"""Smoke script for rate CRUD + comparison against a throwaway database.

Sequence:
 1. Start the app on a temp DB with demo rates seeded.
 2. Compare PKR across providers.
 3. Create a duplicate pair (different casing) and show the 422 body.
 4. Update one provider's rate and compare again.
 5. Compare a currency with no rates (404).
"""

from remit_rates.main import create_app
from fastapi.testclient import TestClient
from remit_rates.core.config import Settings
import tempfile
import os
import json


def run():
    with tempfile.TemporaryDirectory() as d:
        settings = Settings(
            data_dir=d, db_path=os.path.join(d, "smoke.db"), seed_on_startup=True
        )
        app = create_app(settings_override=settings)
        client = TestClient(app)

        results = {}
        results["compare_pkr"] = client.get("/api/v1/rates/compare/pkr").json()
        dup = client.post(
            "/api/v1/rates", json={"provider": "wise", "rate": 281.0, "currency": "PKR"}
        )
        results["duplicate_status"] = dup.status_code
        results["duplicate_body"] = dup.json()
        xoom = client.get(
            "/api/v1/rates", params={"currency": "PKR", "provider": "Xoom"}
        ).json()[0]
        results["update_xoom"] = client.put(
            f"/api/v1/rates/{xoom['id']}", json={"rate": 281.12345}
        ).json()
        results["compare_pkr_after"] = client.get("/api/v1/rates/compare/PKR").json()
        empty = client.get("/api/v1/rates/compare/LKR")
        results["empty_status"] = empty.status_code
        results["empty_body"] = empty.json()
        print(json.dumps(results, indent=2))


if __name__ == "__main__":
    run()
