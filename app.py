import logging

from dotenv import load_dotenv

from flask import Flask, request, jsonify

load_dotenv()

from repo_wiki.db import DBAdapter, get_default_adapter
from repo_wiki.errors import InvalidRepoUrlError, WikiError
from repo_wiki.services import WikiGenerator, WikiService
from repo_wiki.services.source import GitHubSource

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(
    adapter: DBAdapter | None = None,
    source: GitHubSource | None = None,
    generator: WikiGenerator | None = None,
) -> Flask:
    """Build the Flask app around one store adapter shared by every request."""
    app = Flask(__name__)
    db_adapter = adapter or get_default_adapter()
    db_adapter.create_tables()
    wiki_generator = generator or WikiGenerator(db_adapter, source)
    wiki_service = WikiService(db_adapter)

    @app.route("/")
    def hello_world() -> str:
        logger.debug("Health check request received.")
        return "Hello, World!"

    @app.route("/generate", methods=["POST"])
    def generate() -> tuple:
        """
        Generate a wiki by grouping file paths (structural strategy).

        JSON body: { "repo_url": "https://github.com/owner/repo" }
        """
        try:
            repo_url = _repo_url_from_request()
            logger.info("generate repo_url=%s", repo_url)
            page_id = wiki_generator.generate_from_paths(repo_url)
            return jsonify({"id": page_id}), 200
        except Exception as e:
            return _error_response(e, "generate")

    @app.route("/generate-v2", methods=["POST"])
    def generate_v2() -> tuple:
        """
        Generate a wiki by clustering file synopses (content-based strategy).

        JSON body: { "repo_url": "https://github.com/owner/repo" }
        """
        try:
            repo_url = _repo_url_from_request()
            logger.info("generate-v2 repo_url=%s", repo_url)
            page_id = wiki_generator.generate_from_content(repo_url)
            return jsonify({"id": page_id}), 200
        except Exception as e:
            return _error_response(e, "generate-v2")

    @app.route("/subsystems/<int:subsystem_id>/summary", methods=["POST"])
    def generate_subsystem_summary(subsystem_id: int) -> tuple:
        """Generate and store the deep-dive summary for one subsystem."""
        try:
            logger.info("subsystem summary subsystem_id=%d", subsystem_id)
            return jsonify(wiki_generator.generate_subsystem_detail(subsystem_id)), 200
        except Exception as e:
            return _error_response(e, "subsystem summary")

    @app.route("/wiki", methods=["GET"])
    def list_wiki_pages() -> tuple:
        try:
            return jsonify({"pages": wiki_service.list_pages()}), 200
        except Exception as e:
            return _error_response(e, "list wiki pages")

    @app.route("/wiki/<int:page_id>", methods=["GET"])
    def get_wiki_page(page_id: int) -> tuple:
        try:
            return jsonify(wiki_service.get_page(page_id)), 200
        except Exception as e:
            return _error_response(e, "get wiki page")

    return app


def _repo_url_from_request() -> str:
    body = request.get_json(silent=True) or {}
    repo_url = body.get("repo_url") or body.get("repoUrl")
    if not isinstance(repo_url, str) or not repo_url.strip():
        raise InvalidRepoUrlError("Missing 'repo_url' in JSON body")
    return repo_url.strip()


def _error_response(e: Exception, what: str) -> tuple:
    if isinstance(e, WikiError):
        if e.status_code >= 500:
            logger.exception("%s failed.", what)
        else:
            logger.info("%s rejected status=%d: %s", what, e.status_code, e)
        return jsonify({"error": str(e)}), e.status_code
    logger.exception("%s failed.", what)
    return jsonify({"error": "Internal server error"}), 500


if __name__ == "__main__":
    create_app().run(debug=True)
