import uvicorn  # type: ignore

from collab_rbac.utils import configure_logging, get_logger

configure_logging()
log = get_logger(__name__)

if __name__ == "__main__":
    log.info("Running server")
    uvicorn.run("collab_rbac.main:app", reload=True, host="127.0.0.1", port=8000)
