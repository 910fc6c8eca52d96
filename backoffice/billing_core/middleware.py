from django.utils.deprecation import MiddlewareMixin

from .models import AccountMembership


class AccountContextMiddleware(MiddlewareMixin):
    # Attach .account and .role to every request, based on the logged-in user
    def process_request(self, request):
        request.account = None
        request.role = None

        if not request.user.is_authenticated:
            return

        memberships = (
            AccountMembership.objects.filter(user=request.user, is_active=True)
            .select_related("account")
            .order_by("created_at", "pk")
        )

        # If user switched accounts, the choice is stored in the session
        account_id = request.session.get("active_account_id")
        if account_id:
            # user must be a member of that account; a tampered session gets nothing
            membership = memberships.filter(account_id=account_id).first()
        else:
            membership = memberships.first()

        if membership is not None:
            request.account = membership.account
            request.role = membership.role
