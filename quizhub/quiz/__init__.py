"""
Quiz module for authoring quizzes and taking them.

This module provides functionality for users to create quizzes with
nested questions and options, submit answer sets for automatic scoring
and review stored results.
"""
from flask import Blueprint
from quizhub.config import config

quiz_bp = Blueprint('quiz', __name__, url_prefix=config.API_PREFIX)

from quizhub.quiz import authoring_routes, question_routes, result_routes  # noqa: E402,F401
