from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from typing import List, Optional
import logging

from changed_pkgs.config import get_settings
from changed_pkgs.errors import ChangedPackagesError
from changed_pkgs.services.analyzer import ChangedPackagesAnalyzer

logger = logging.getLogger(__name__)

settings = get_settings()
app = FastAPI(title=settings.APP_NAME)

class ChangedPackagesRequest(BaseModel):
    from_ref: str
    to_ref: str
    repo_dir: Optional[str] = None
    mod_dir: Optional[str] = None

class PackageImpact(BaseModel):
    package: str
    reason: Optional[str] = None
    source: Optional[str] = None

class ChangedPackagesResponse(BaseModel):
    packages: List[PackageImpact]
    changed_modules: List[str]

@app.get("/")
def read_root():
    return {"message": f"{settings.APP_NAME} API"}

@app.post("/changed-packages", response_model=ChangedPackagesResponse)
def changed_packages(request: ChangedPackagesRequest):
    """Packages impacted by the changes between `from_ref` and `to_ref`"""
    try:
        analyzer = ChangedPackagesAnalyzer.from_settings(settings, repo_dir=request.repo_dir)
        change_set = analyzer.get_changed_packages(
            request.mod_dir or settings.MOD_DIR,
            request.from_ref,
            request.to_ref,
        )
    except ChangedPackagesError as e:
        raise HTTPException(status_code=400, detail=f"getting changed packages: {e}")
    except Exception as e:
        logger.exception("Unexpected failure computing changed packages")
        raise HTTPException(status_code=500, detail=str(e))

    packages = []
    for pkg_path in sorted(change_set.packages):
        reason = change_set.reasons.get(pkg_path)
        packages.append(PackageImpact(
            package=pkg_path,
            reason=reason.reason.value if reason else None,
            source=reason.source if reason else None,
        ))

    return ChangedPackagesResponse(
        packages=packages,
        changed_modules=sorted(change_set.modules),
    )
