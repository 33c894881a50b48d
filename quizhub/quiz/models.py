"""
Database models for quiz functionality.

Ownership is a strict tree: a Quiz owns its Questions, a Question owns its
Options. Children point at their parent by id and parents expose their
children ordered by id. Results and their answers are written once by the
submission engine and never updated.
"""
from datetime import datetime

from quizhub import db


def compute_percentage(correct_count: int, total_questions: int) -> float:
    """Score as a percentage; 0.0 for an empty quiz."""
    if not total_questions:
        return 0.0
    return 100.0 * correct_count / total_questions


class Quiz(db.Model):
    """
    Model for quizzes.

    Deleting a quiz removes its questions, their options and every result
    recorded against it.
    """
    __tablename__ = "quizzes"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    subject_code = db.Column(db.String(50), nullable=False, default="", index=True)
    description = db.Column(db.Text, nullable=True)
    image_url = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, nullable=True)
    is_published = db.Column(db.Boolean, default=False, nullable=False, index=True)
    published_at = db.Column(db.DateTime, nullable=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete='SET NULL'), nullable=True, index=True)

    # Relationships
    owner = db.relationship("User", foreign_keys=[owner_id])
    questions = db.relationship("Question", backref="quiz", cascade="all, delete-orphan", order_by="Question.id")
    results = db.relationship("Result", backref="quiz", cascade="all, delete-orphan")

    __table_args__ = (
        db.Index('ix_quizzes_owner_published', 'owner_id', 'is_published'),
    )

    def __repr__(self) -> str:
        return f"<Quiz {self.id}: {self.title}>"

    def get_question_count(self) -> int:
        """Get total number of questions."""
        return len(self.questions)


class Question(db.Model):
    """Model for quiz questions. Single-answer multiple choice only."""
    __tablename__ = "quiz_questions"

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quizzes.id", ondelete='CASCADE'), nullable=False, index=True)
    text = db.Column(db.Text, nullable=False)

    # Relationships
    options = db.relationship("Option", backref="question", cascade="all, delete-orphan", order_by="Option.id")

    def __repr__(self) -> str:
        return f"<Question {self.id}: quiz {self.quiz_id}>"

    def find_option(self, option_id: int):
        """Return the option with ``option_id`` if this question owns it, else None."""
        for option in self.options:
            if option.id == option_id:
                return option
        return None


class Option(db.Model):
    """Model for answer options of a question."""
    __tablename__ = "quiz_question_options"

    id = db.Column(db.Integer, primary_key=True)
    question_id = db.Column(db.Integer, db.ForeignKey("quiz_questions.id", ondelete='CASCADE'), nullable=False, index=True)
    text = db.Column(db.Text, nullable=False)
    is_correct = db.Column(db.Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<Option {self.id}: {self.text[:50]}>"


class Result(db.Model):
    """
    Model for one completed attempt at a quiz.

    ``total_questions`` is the live question count of the quiz at the time
    of submission, not the number of answers supplied.
    """
    __tablename__ = "quiz_results"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete='CASCADE'), nullable=False, index=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quizzes.id", ondelete='CASCADE'), nullable=False, index=True)
    correct_count = db.Column(db.Integer, nullable=False, default=0)
    total_questions = db.Column(db.Integer, nullable=False)
    completed_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    # Relationships
    user = db.relationship("User", foreign_keys=[user_id])
    answers = db.relationship("ResultAnswer", backref="result", cascade="all, delete-orphan", order_by="ResultAnswer.id")

    __table_args__ = (
        db.CheckConstraint(
            'correct_count >= 0 AND correct_count <= total_questions',
            name='ck_quiz_results_score_bounds',
        ),
        db.Index('ix_quiz_results_user_completed', 'user_id', 'completed_at'),
        db.Index('ix_quiz_results_quiz_completed', 'quiz_id', 'completed_at'),
    )

    def __repr__(self) -> str:
        return f"<Result {self.id}: user {self.user_id}, quiz {self.quiz_id}>"

    @property
    def percentage(self) -> float:
        return compute_percentage(self.correct_count, self.total_questions)


class ResultAnswer(db.Model):
    """The option a user chose for one question within a result."""
    __tablename__ = "quiz_result_answers"

    id = db.Column(db.Integer, primary_key=True)
    result_id = db.Column(db.Integer, db.ForeignKey("quiz_results.id", ondelete='CASCADE'), nullable=False, index=True)
    question_id = db.Column(db.Integer, db.ForeignKey("quiz_questions.id", ondelete='CASCADE'), nullable=False, index=True)
    option_id = db.Column(db.Integer, db.ForeignKey("quiz_question_options.id", ondelete='CASCADE'), nullable=False, index=True)

    # Many-to-one links so deletes of a quiz remove answers before their options
    question = db.relationship("Question", foreign_keys=[question_id])
    option = db.relationship("Option", foreign_keys=[option_id])

    __table_args__ = (
        db.UniqueConstraint('result_id', 'question_id', name='uq_result_question'),
    )

    def __repr__(self) -> str:
        return f"<ResultAnswer {self.id}: question {self.question_id} -> option {self.option_id}>"
