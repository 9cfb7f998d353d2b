from flask import Blueprint, g, jsonify

from .guard import token_required


main_bp = Blueprint("main", __name__)


POSTS = [
    {"username": "Kyle", "title": "Post 1"},
    {"username": "Jim", "title": "Post 2"},
]


@main_bp.route("/posts")
@main_bp.route("/post")
@token_required
def posts():
    """Protected list of the caller's posts."""

    username = g.identity.get("username")
    return jsonify([post for post in POSTS if post["username"] == username])
