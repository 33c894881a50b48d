"""Create users, quiz and result tables

Revision ID: 3f9c2a71d0b4
Revises:
Create Date: 2025-12-03 15:11:48.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision = '3f9c2a71d0b4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    inspector = inspect(op.get_bind())
    tables = inspector.get_table_names()

    if 'users' not in tables:
        op.create_table('users',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('email', sa.String(length=255), nullable=False),
            sa.Column('password_hash', sa.String(length=255), nullable=False),
            sa.Column('full_name', sa.String(length=255), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # Create quizzes table
    if 'quizzes' not in tables:
        op.create_table('quizzes',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('title', sa.String(length=255), nullable=False),
            sa.Column('subject_code', sa.String(length=50), nullable=False, server_default=''),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('image_url', sa.String(length=500), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
            sa.Column('is_published', sa.Boolean(), nullable=False, server_default='0'),
            sa.Column('published_at', sa.DateTime(), nullable=True),
            sa.Column('owner_id', sa.Integer(), nullable=True),
            sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_quizzes_subject_code', 'quizzes', ['subject_code'], unique=False)
        op.create_index('ix_quizzes_created_at', 'quizzes', ['created_at'], unique=False)
        op.create_index('ix_quizzes_is_published', 'quizzes', ['is_published'], unique=False)
        op.create_index('ix_quizzes_owner_id', 'quizzes', ['owner_id'], unique=False)
        op.create_index('ix_quizzes_owner_published', 'quizzes', ['owner_id', 'is_published'], unique=False)

    # Create quiz_questions table
    if 'quiz_questions' not in tables:
        op.create_table('quiz_questions',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('quiz_id', sa.Integer(), nullable=False),
            sa.Column('text', sa.Text(), nullable=False),
            sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_quiz_questions_quiz_id', 'quiz_questions', ['quiz_id'], unique=False)

    # Create quiz_question_options table
    if 'quiz_question_options' not in tables:
        op.create_table('quiz_question_options',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('question_id', sa.Integer(), nullable=False),
            sa.Column('text', sa.Text(), nullable=False),
            sa.Column('is_correct', sa.Boolean(), nullable=False, server_default='0'),
            sa.ForeignKeyConstraint(['question_id'], ['quiz_questions.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_quiz_question_options_question_id', 'quiz_question_options', ['question_id'], unique=False)

    # Create quiz_results table
    if 'quiz_results' not in tables:
        op.create_table('quiz_results',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('quiz_id', sa.Integer(), nullable=False),
            sa.Column('correct_count', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('total_questions', sa.Integer(), nullable=False),
            sa.Column('completed_at', sa.DateTime(), nullable=False),
            sa.CheckConstraint('correct_count >= 0 AND correct_count <= total_questions',
                               name='ck_quiz_results_score_bounds'),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_quiz_results_user_id', 'quiz_results', ['user_id'], unique=False)
        op.create_index('ix_quiz_results_quiz_id', 'quiz_results', ['quiz_id'], unique=False)
        op.create_index('ix_quiz_results_completed_at', 'quiz_results', ['completed_at'], unique=False)
        op.create_index('ix_quiz_results_user_completed', 'quiz_results', ['user_id', 'completed_at'], unique=False)
        op.create_index('ix_quiz_results_quiz_completed', 'quiz_results', ['quiz_id', 'completed_at'], unique=False)

    # Create quiz_result_answers table
    if 'quiz_result_answers' not in tables:
        op.create_table('quiz_result_answers',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('result_id', sa.Integer(), nullable=False),
            sa.Column('question_id', sa.Integer(), nullable=False),
            sa.Column('option_id', sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(['result_id'], ['quiz_results.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['question_id'], ['quiz_questions.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['option_id'], ['quiz_question_options.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('result_id', 'question_id', name='uq_result_question')
        )
        op.create_index('ix_quiz_result_answers_result_id', 'quiz_result_answers', ['result_id'], unique=False)
        op.create_index('ix_quiz_result_answers_question_id', 'quiz_result_answers', ['question_id'], unique=False)
        op.create_index('ix_quiz_result_answers_option_id', 'quiz_result_answers', ['option_id'], unique=False)


def downgrade():
    op.drop_index('ix_quiz_result_answers_option_id', table_name='quiz_result_answers')
    op.drop_index('ix_quiz_result_answers_question_id', table_name='quiz_result_answers')
    op.drop_index('ix_quiz_result_answers_result_id', table_name='quiz_result_answers')
    op.drop_table('quiz_result_answers')

    op.drop_index('ix_quiz_results_quiz_completed', table_name='quiz_results')
    op.drop_index('ix_quiz_results_user_completed', table_name='quiz_results')
    op.drop_index('ix_quiz_results_completed_at', table_name='quiz_results')
    op.drop_index('ix_quiz_results_quiz_id', table_name='quiz_results')
    op.drop_index('ix_quiz_results_user_id', table_name='quiz_results')
    op.drop_table('quiz_results')

    op.drop_index('ix_quiz_question_options_question_id', table_name='quiz_question_options')
    op.drop_table('quiz_question_options')

    op.drop_index('ix_quiz_questions_quiz_id', table_name='quiz_questions')
    op.drop_table('quiz_questions')

    op.drop_index('ix_quizzes_owner_published', table_name='quizzes')
    op.drop_index('ix_quizzes_owner_id', table_name='quizzes')
    op.drop_index('ix_quizzes_is_published', table_name='quizzes')
    op.drop_index('ix_quizzes_created_at', table_name='quizzes')
    op.drop_index('ix_quizzes_subject_code', table_name='quizzes')
    op.drop_table('quizzes')

    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
