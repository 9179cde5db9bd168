from fastapi import FastAPI, Form, Header, HTTPException
from fastapi.responses import JSONResponse
from pathlib import Path
from typing import Optional
import json

app = FastAPI(title="Mock BBVA Server", version="1.0.0")
DATA_DIR = Path("/data/bank_stub")
PAGE_SIZE = 2

@app.get("/health")
def health(): return {"status": "ok"}

@app.post("/DFAUTH/slod/DFServletXML")
def login(eai_user: str = Form(...), eai_password: str = Form(...)):
    response = JSONResponse(content={"user": eai_user})
    response.set_cookie("tsec", eai_user)
    return response

def _require_get(bbva_method: Optional[str]):
    if bbva_method != "GET":
        raise HTTPException(status_code=405, detail="BBVA-Method must be GET")

@app.post("/ENPP/enpp_mult_web_mobility_02/products/v1")
def products(bbva_method: Optional[str] = Header(None)):
    _require_get(bbva_method)
    return JSONResponse(content=json.loads((DATA_DIR / "products.json").read_text()))

@app.post("/ENPP/enpp_mult_web_mobility_02/accounts/{account_id}/movements/v1")
def movements(account_id: str, fromDate: str, offset: Optional[str] = None,
              bbva_method: Optional[str] = Header(None)):
    _require_get(bbva_method)
    file = DATA_DIR / f"movements_{account_id}.json"
    if not file.exists():
        raise HTTPException(status_code=404, detail="account not found")
    rows = [m for m in json.loads(file.read_text()) if m["operationDate"] >= fromDate]
    start = int(offset or 0)
    page = rows[start:start + PAGE_SIZE]
    more = start + PAGE_SIZE < len(rows)
    body = {"movements": page, "thereAreMoreMovements": more}
    if more:
        body["offset"] = str(start + PAGE_SIZE)
        body["paginationBalance"] = str(page[-1].get("accountBalanceAfterMovement", ""))
    return JSONResponse(content=body)
