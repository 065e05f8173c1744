"""Unit tests for MarkdownFileService, the deep module owning the file lifecycle.

Tests the service layer directly against in-memory SQLite, bypassing the
HTTP stack. Covers CRUD, title uniqueness across the active/trash
partition, ownership scoping, the trash transitions, listing and search.
"""

import pytest

from mdnotes.exceptions import (
    ConflictError,
    GroupNotFoundError,
    MarkdownFileNotFoundError,
    ValidationError,
)
from mdnotes.models import MarkdownFile
from mdnotes.schemas.markdown_file import MarkdownFileUpdate


class TestCreateFile:

    def test_create_trims_title_and_defaults_content(self, files, user):
        f = files.create_file(user.id, "  Shopping list  ")
        assert f.title == "Shopping list"
        assert f.content == ""
        assert f.group_id is None
        assert f.deleted_at is None

    @pytest.mark.parametrize("title", ["", "   ", None])
    def test_empty_title_rejected(self, files, user, title):
        with pytest.raises(ValidationError):
            files.create_file(user.id, title)

    def test_duplicate_active_title_conflicts(self, files, user):
        files.create_file(user.id, "Ideas")
        with pytest.raises(ConflictError):
            files.create_file(user.id, "Ideas")

    def test_title_is_case_sensitive(self, files, user):
        files.create_file(user.id, "Ideas")
        assert files.create_file(user.id, "ideas").title == "ideas"

    def test_same_title_allowed_for_other_owner(self, files, user, other_user):
        files.create_file(user.id, "Ideas")
        assert files.create_file(other_user.id, "Ideas").user_id == other_user.id

    def test_trashed_title_does_not_block_create(self, files, user):
        old = files.create_file(user.id, "Ideas")
        files.soft_delete(user.id, old.id)
        new = files.create_file(user.id, "Ideas")
        assert new.id != old.id

    def test_create_in_own_group(self, files, groups, user):
        g = groups.create_group(user.id, "Work")
        f = files.create_file(user.id, "Plan", group_id=g.id)
        assert f.group_id == g.id

    def test_create_in_foreign_group_not_found(self, files, groups, user, other_user):
        g = groups.create_group(other_user.id, "Work")
        with pytest.raises(GroupNotFoundError):
            files.create_file(user.id, "Plan", group_id=g.id)


class TestGetAndCount:

    def test_get_own_file(self, files, user):
        f = files.create_file(user.id, "Note", "body")
        assert files.get_file(user.id, f.id).content == "body"

    def test_foreign_file_is_not_found(self, files, user, other_user):
        f = files.create_file(user.id, "Note")
        with pytest.raises(MarkdownFileNotFoundError):
            files.get_file(other_user.id, f.id)

    def test_trashed_file_is_not_found(self, files, user):
        f = files.create_file(user.id, "Note")
        files.soft_delete(user.id, f.id)
        with pytest.raises(MarkdownFileNotFoundError):
            files.get_file(user.id, f.id)

    def test_count_ignores_trash_and_other_owners(self, files, user, other_user):
        a = files.create_file(user.id, "A")
        files.create_file(user.id, "B")
        files.create_file(other_user.id, "C")
        files.soft_delete(user.id, a.id)
        assert files.count_files(user.id) == 1


class TestUpdateFile:

    def test_partial_update_keeps_other_fields(self, files, user):
        f = files.create_file(user.id, "Note", "old body")
        updated = files.update_file(user.id, f.id, MarkdownFileUpdate(content="new body"))
        assert updated.title == "Note"
        assert updated.content == "new body"

    def test_rename_to_taken_title_conflicts(self, files, user):
        files.create_file(user.id, "A")
        b = files.create_file(user.id, "B")
        with pytest.raises(ConflictError):
            files.update_file(user.id, b.id, MarkdownFileUpdate(title="A"))

    def test_rename_to_own_title_is_allowed(self, files, user):
        f = files.create_file(user.id, "A")
        assert files.update_file(user.id, f.id, MarkdownFileUpdate(title=" A ")).title == "A"

    def test_rename_to_empty_title_rejected(self, files, user):
        f = files.create_file(user.id, "A")
        with pytest.raises(ValidationError):
            files.update_file(user.id, f.id, MarkdownFileUpdate(title="  "))

    def test_move_between_groups_and_ungroup(self, files, groups, user):
        g1 = groups.create_group(user.id, "One")
        g2 = groups.create_group(user.id, "Two")
        f = files.create_file(user.id, "Note", group_id=g1.id)

        moved = files.update_file(user.id, f.id, MarkdownFileUpdate(group_id=g2.id))
        assert moved.group_id == g2.id

        ungrouped = files.update_file(user.id, f.id, MarkdownFileUpdate(group_id=None))
        assert ungrouped.group_id is None

    @pytest.mark.parametrize("sentinel", ["", "null", "NULL"])
    def test_sentinel_group_values_ungroup(self, files, groups, user, sentinel):
        g = groups.create_group(user.id, "One")
        f = files.create_file(user.id, "Note", group_id=g.id)
        update = MarkdownFileUpdate.model_validate({"groupId": sentinel})
        assert files.update_file(user.id, f.id, update).group_id is None

    def test_omitted_group_keeps_group(self, files, groups, user):
        g = groups.create_group(user.id, "One")
        f = files.create_file(user.id, "Note", group_id=g.id)
        assert files.update_file(user.id, f.id, MarkdownFileUpdate(title="Renamed")).group_id == g.id

    def test_move_to_foreign_group_not_found(self, files, groups, user, other_user):
        g = groups.create_group(other_user.id, "Theirs")
        f = files.create_file(user.id, "Note")
        with pytest.raises(GroupNotFoundError):
            files.update_file(user.id, f.id, MarkdownFileUpdate(group_id=g.id))

    def test_update_trashed_file_not_found(self, files, user):
        f = files.create_file(user.id, "Note")
        files.soft_delete(user.id, f.id)
        with pytest.raises(MarkdownFileNotFoundError):
            files.update_file(user.id, f.id, MarkdownFileUpdate(content="x"))


class TestSoftDelete:

    def test_soft_delete_moves_to_trash(self, files, user):
        f = files.create_file(user.id, "Note")
        trashed = files.soft_delete(user.id, f.id)
        assert trashed.deleted_at is not None
        assert files.list_trashed(user.id).pagination.total == 1

    def test_soft_delete_twice_not_found(self, files, user):
        f = files.create_file(user.id, "Note")
        files.soft_delete(user.id, f.id)
        with pytest.raises(MarkdownFileNotFoundError):
            files.soft_delete(user.id, f.id)

    def test_soft_delete_foreign_file_not_found(self, files, user, other_user):
        f = files.create_file(user.id, "Note")
        with pytest.raises(MarkdownFileNotFoundError):
            files.soft_delete(other_user.id, f.id)

    def test_bulk_soft_delete_counts_only_owned_active(self, files, user, other_user):
        a = files.create_file(user.id, "A")
        b = files.create_file(user.id, "B")
        c = files.create_file(user.id, "C")
        theirs = files.create_file(other_user.id, "X")
        files.soft_delete(user.id, c.id)

        affected = files.bulk_soft_delete(user.id, [a.id, b.id, c.id, theirs.id, "missing"])

        assert affected == 2
        assert files.count_files(user.id) == 0
        assert files.count_files(other_user.id) == 1

    def test_bulk_soft_delete_requires_ids(self, files, user):
        with pytest.raises(ValidationError):
            files.bulk_soft_delete(user.id, [])


class TestRestore:

    def test_restore_returns_file_to_active(self, files, user):
        f = files.create_file(user.id, "Note")
        files.soft_delete(user.id, f.id)
        restored = files.restore_file(user.id, f.id)
        assert restored.deleted_at is None
        assert files.get_file(user.id, f.id).title == "Note"

    def test_restore_conflicts_with_active_title(self, files, user):
        old = files.create_file(user.id, "Note")
        files.soft_delete(user.id, old.id)
        files.create_file(user.id, "Note")

        with pytest.raises(ConflictError) as exc_info:
            files.restore_file(user.id, old.id)
        assert exc_info.value.details["titles"] == ["Note"]
        # Untouched: still in the trash, title unchanged.
        assert files.list_trashed(user.id).data[0].id == old.id

    def test_restore_active_file_not_found(self, files, user):
        f = files.create_file(user.id, "Note")
        with pytest.raises(MarkdownFileNotFoundError):
            files.restore_file(user.id, f.id)

    def test_restore_foreign_file_not_found(self, files, user, other_user):
        f = files.create_file(user.id, "Note")
        files.soft_delete(user.id, f.id)
        with pytest.raises(MarkdownFileNotFoundError):
            files.restore_file(other_user.id, f.id)


class TestRestoreAll:

    def test_restore_all_empty_trash(self, files, user):
        assert files.restore_all(user.id) == 0

    def test_restore_all_restores_everything(self, files, user):
        ids = [files.create_file(user.id, t).id for t in ("A", "B", "C")]
        files.bulk_soft_delete(user.id, ids)
        assert files.restore_all(user.id) == 3
        assert files.count_files(user.id) == 3
        assert files.list_trashed(user.id).pagination.total == 0

    def test_restore_all_is_all_or_nothing(self, files, user):
        a = files.create_file(user.id, "A")
        b = files.create_file(user.id, "B")
        c = files.create_file(user.id, "C")
        files.bulk_soft_delete(user.id, [a.id, b.id, c.id])
        files.create_file(user.id, "A")
        files.create_file(user.id, "C")

        with pytest.raises(ConflictError) as exc_info:
            files.restore_all(user.id)

        assert exc_info.value.details["titles"] == ["A", "C"]
        assert files.list_trashed(user.id).pagination.total == 3
        assert files.count_files(user.id) == 2

    def test_duplicate_titles_inside_trash_conflict(self, files, user):
        first = files.create_file(user.id, "Draft")
        files.soft_delete(user.id, first.id)
        second = files.create_file(user.id, "Draft")
        files.soft_delete(user.id, second.id)

        with pytest.raises(ConflictError) as exc_info:
            files.restore_all(user.id)
        assert exc_info.value.details["titles"] == ["Draft"]
        assert files.count_files(user.id) == 0

    def test_restore_all_leaves_other_owner_trash(self, files, user, other_user):
        mine = files.create_file(user.id, "Mine")
        theirs = files.create_file(other_user.id, "Theirs")
        files.soft_delete(user.id, mine.id)
        files.soft_delete(other_user.id, theirs.id)

        assert files.restore_all(user.id) == 1
        assert files.list_trashed(other_user.id).pagination.total == 1


class TestPurge:

    def test_permanent_delete_removes_row(self, db, files, user):
        f = files.create_file(user.id, "Note")
        file_id = f.id
        files.soft_delete(user.id, file_id)
        files.permanent_delete(user.id, file_id)
        assert db.get(MarkdownFile, file_id) is None

    def test_permanent_delete_requires_trashed_file(self, files, user):
        f = files.create_file(user.id, "Note")
        with pytest.raises(MarkdownFileNotFoundError):
            files.permanent_delete(user.id, f.id)
        assert files.get_file(user.id, f.id) is not None

    def test_permanent_delete_foreign_file_not_found(self, files, user, other_user):
        f = files.create_file(user.id, "Note")
        files.soft_delete(user.id, f.id)
        with pytest.raises(MarkdownFileNotFoundError):
            files.permanent_delete(other_user.id, f.id)

    def test_empty_trash_purges_only_own_trash(self, files, user, other_user):
        keep = files.create_file(user.id, "Keep")
        ids = [files.create_file(user.id, t).id for t in ("A", "B")]
        files.bulk_soft_delete(user.id, ids)
        theirs = files.create_file(other_user.id, "Theirs")
        files.soft_delete(other_user.id, theirs.id)

        assert files.empty_trash(user.id) == 2
        assert files.list_trashed(user.id).pagination.total == 0
        assert files.list_trashed(other_user.id).pagination.total == 1
        assert files.get_file(user.id, keep.id).title == "Keep"

    def test_empty_trash_when_empty(self, files, user):
        assert files.empty_trash(user.id) == 0


class TestListActive:

    def test_pagination_meta(self, files, user):
        for i in range(25):
            files.create_file(user.id, f"Note {i:02d}")

        page = files.list_active(user.id, page=2, limit=10)

        assert len(page.data) == 10
        meta = page.pagination
        assert (meta.page, meta.limit, meta.total, meta.total_pages) == (2, 10, 25, 3)
        assert meta.has_next_page is True
        assert meta.has_prev_page is True

    def test_limit_is_capped(self, files, user):
        for i in range(25):
            files.create_file(user.id, f"Note {i:02d}")
        page = files.list_active(user.id, limit=100)
        assert page.pagination.limit == 20
        assert len(page.data) == 20

    def test_page_past_end_is_empty(self, files, user):
        files.create_file(user.id, "Only")
        page = files.list_active(user.id, page=5)
        assert page.data == []
        assert page.pagination.total == 1

    def test_order_by_title_ascending(self, files, user):
        for t in ("b", "c", "a"):
            files.create_file(user.id, t)
        page = files.list_active(user.id, order_by="title", order="asc")
        assert [f.title for f in page.data] == ["a", "b", "c"]

    def test_unknown_order_by_falls_back_to_created_at_desc(self, files, user):
        for t in ("first", "second", "third"):
            files.create_file(user.id, t)
        page = files.list_active(user.id, order_by="content; DROP TABLE", order="sideways")
        assert [f.title for f in page.data] == ["third", "second", "first"]

    def test_excludes_trash_and_other_owners(self, files, user, other_user):
        a = files.create_file(user.id, "A")
        files.create_file(user.id, "B")
        files.create_file(other_user.id, "C")
        files.soft_delete(user.id, a.id)
        assert [f.title for f in files.list_active(user.id).data] == ["B"]

    def test_group_and_ungrouped_filters(self, files, groups, user):
        g = groups.create_group(user.id, "Work")
        files.create_file(user.id, "In group", group_id=g.id)
        files.create_file(user.id, "Loose")

        assert [f.title for f in files.list_active(user.id, group_id=g.id).data] == ["In group"]
        assert [f.title for f in files.list_active(user.id, ungrouped=True).data] == ["Loose"]

    def test_group_and_ungrouped_together_rejected(self, files, groups, user):
        g = groups.create_group(user.id, "Work")
        with pytest.raises(ValidationError):
            files.list_active(user.id, group_id=g.id, ungrouped=True)

    def test_unknown_group_not_found(self, files, user):
        with pytest.raises(GroupNotFoundError):
            files.list_active(user.id, group_id="no-such-group")


class TestListTrashed:

    def test_most_recently_deleted_first(self, files, user):
        ids = {t: files.create_file(user.id, t).id for t in ("A", "B", "C")}
        for t in ("B", "A", "C"):
            files.soft_delete(user.id, ids[t])

        page = files.list_trashed(user.id)
        assert [f.title for f in page.data] == ["C", "A", "B"]
        assert page.pagination.total == 3


class TestSearch:

    def test_matches_title_or_content_case_insensitively(self, files, user):
        files.create_file(user.id, "Groceries", "milk, eggs")
        files.create_file(user.id, "Recipes", "Pancakes need MILK")
        files.create_file(user.id, "Books", "nothing here")

        page = files.search(user.id, "milk")
        assert sorted(f.title for f in page.data) == ["Groceries", "Recipes"]

    def test_keyword_is_literal(self, files, user):
        files.create_file(user.id, "Progress", "50% done")
        files.create_file(user.id, "Other", "500 items")
        assert [f.title for f in files.search(user.id, "50%").data] == ["Progress"]
        assert files.search(user.id, "_").pagination.total == 0

    def test_blank_keyword_lists_active(self, files, user):
        files.create_file(user.id, "A")
        files.create_file(user.id, "B")
        assert files.search(user.id, "   ").pagination.total == 2

    def test_search_excludes_trash_and_other_owners(self, files, user, other_user):
        gone = files.create_file(user.id, "Secret plan")
        files.soft_delete(user.id, gone.id)
        files.create_file(other_user.id, "Secret diary")
        assert files.search(user.id, "secret").pagination.total == 0

    def test_search_within_group(self, files, groups, user):
        g = groups.create_group(user.id, "Work")
        files.create_file(user.id, "Work todo", group_id=g.id)
        files.create_file(user.id, "Home todo")
        page = files.search(user.id, "todo", group_id=g.id)
        assert [f.title for f in page.data] == ["Work todo"]
