import asyncio
import sys
import os

# Add project root to sys.path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from app.db.session import async_session_maker
from app.models.user import AuthAccount, UserProfile

async def list_users():
    async with async_session_maker() as session:
        result = await session.execute(
            select(AuthAccount.email, AuthAccount.email_verified, UserProfile.address, UserProfile.post_count)
            .outerjoin(UserProfile, UserProfile.uid == AuthAccount.uid)
            .order_by(AuthAccount.created_at)
        )
        users = result.all()
        if not users:
            print("No users found in database.")
        else:
            print("Current Users:")
            for email, verified, address, post_count in users:
                handle = f"@{address}" if address else "(no profile)"
                print(f"- {handle} ({email}) | Verified: {verified} | Posts: {post_count or 0}")

if __name__ == "__main__":
    asyncio.run(list_users())
