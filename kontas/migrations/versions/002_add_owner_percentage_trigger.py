"""Add expense owner percentage-sum trigger (PostgreSQL).

Revision: 002_add_owner_percentage_trigger
Created:  2026-10-18

The percentages of an expense's owners must sum to exactly 100. The
service layer (split_service.validate_owners) checks this before writing;
this trigger is the database-level backstop for writes that bypass it.

Why a trigger and not a CHECK constraint:
  CHECK constraints are evaluated per row and cannot aggregate sibling
  rows. A row-level constraint trigger on expense_owners can.

Trigger design:
  Function : fn_check_owner_percentage_sum()
    - Determines the affected expense_id from NEW (INSERT/UPDATE) or
      OLD (DELETE).
    - If the expense no longer exists (it was deleted and its owners
      cascaded), there is nothing to check.
    - Otherwise SUM(percentage) for that expense must equal 100.00;
      raises SQLSTATE 23514 (check_violation) if not.

  Trigger  : trg_expense_owners_percentage_sum
    - AFTER INSERT OR UPDATE OR DELETE ON expense_owners
    - DEFERRABLE INITIALLY DEFERRED, FOR EACH ROW

  Deferred execution:
    The trigger fires at COMMIT. Owner rows are inserted one at a time,
    and replacing a split deletes the old rows before inserting the new
    ones; intermediate states never sum to 100.

Append-only: never edit after it has been applied to a database.
"""

from __future__ import annotations

from alembic import op

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "002_add_owner_percentage_trigger"
down_revision: str | None = "001_initial_schema"
branch_labels: tuple | None = None
depends_on: tuple | None = None


# ── SQL definitions ────────────────────────────────────────────────────────

_CREATE_FUNCTION = """
CREATE OR REPLACE FUNCTION fn_check_owner_percentage_sum()
RETURNS TRIGGER
LANGUAGE plpgsql
AS $$
DECLARE
    v_expense_id  INTEGER;
    v_total       NUMERIC(7, 2);
BEGIN
    IF TG_OP = 'DELETE' THEN
        v_expense_id := OLD.expense_id;
    ELSE
        v_expense_id := NEW.expense_id;
    END IF;

    -- The expense itself was deleted in this transaction.
    IF NOT EXISTS (SELECT 1 FROM expenses WHERE id = v_expense_id) THEN
        RETURN NULL;
    END IF;

    SELECT COALESCE(SUM(percentage), 0)
    INTO v_total
    FROM expense_owners
    WHERE expense_id = v_expense_id;

    IF v_total <> 100.00 THEN
        RAISE EXCEPTION
            'Owner percentages for expense id=% sum to %, expected 100',
            v_expense_id, v_total
            USING ERRCODE = '23514';  -- check_violation
    END IF;

    RETURN NULL;
END;
$$;
"""

_CREATE_TRIGGER = """
CREATE CONSTRAINT TRIGGER trg_expense_owners_percentage_sum
    AFTER INSERT OR UPDATE OR DELETE
    ON expense_owners
    DEFERRABLE INITIALLY DEFERRED
    FOR EACH ROW
    EXECUTE FUNCTION fn_check_owner_percentage_sum();
"""

_DROP_TRIGGER = "DROP TRIGGER IF EXISTS trg_expense_owners_percentage_sum ON expense_owners;"
_DROP_FUNCTION = "DROP FUNCTION IF EXISTS fn_check_owner_percentage_sum();"


def upgrade() -> None:
    """Creates the function first; the trigger references it."""
    op.execute(_CREATE_FUNCTION)
    op.execute(_CREATE_TRIGGER)


def downgrade() -> None:
    """Drops the trigger, then its function."""
    op.execute(_DROP_TRIGGER)
    op.execute(_DROP_FUNCTION)
