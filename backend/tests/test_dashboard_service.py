"""
RecipeShare Backend — Dashboard Service Unit Tests
"""

import pytest

from app.services.dashboard_service import dashboard_service


class TestDashboard:

    @pytest.mark.asyncio
    async def test_counts_and_profile(self, mock_db_session, make_result, user, profile):
        mock_db_session.execute.side_effect = [
            make_result(scalar=profile),   # get_or_create_profile
            make_result(scalar=3),         # own recipes
            make_result(scalar=2),         # favorites
            make_result(scalar=5),         # reviews received
            make_result(scalar=1),         # reviews written
        ]

        result = await dashboard_service.get_dashboard(mock_db_session, user)

        assert result.profile.id == user.id
        assert result.profile.username == "cook"
        assert result.recipes_count == 3
        assert result.favorites_count == 2
        assert result.reviews_received_count == 5
        assert result.reviews_written_count == 1

    @pytest.mark.asyncio
    async def test_counts_are_scoped_to_the_caller(self, mock_db_session, make_result, user, profile):
        mock_db_session.execute.side_effect = [make_result(scalar=profile)] + [make_result(scalar=0)] * 4

        result = await dashboard_service.get_dashboard(mock_db_session, user)

        assert result.recipes_count == result.favorites_count == 0
        assert result.reviews_received_count == result.reviews_written_count == 0
        for call in mock_db_session.execute.call_args_list[1:]:
            params = call[0][0].compile().params
            assert user.id in params.values()
