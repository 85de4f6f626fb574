#!/usr/bin/env python3
"""
CRM Geo API
Geocoding and route estimation service for the CRM map and scheduling views
"""
import os
import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "crm_geo.api.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000"))
    )
