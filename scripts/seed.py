"""Populate a development database with users, hashtagged articles and comment threads."""
import argparse
import asyncio
import random
import time

from board.database import Base, async_session, engine
from board.models import UserAccount
from board.schemas import ArticleCreate, CommentCreate
from board.services import article_service, comment_service

HASHTAGS = ["python", "fastapi", "postgresql", "redis", "docker", "kubernetes",
            "react", "typescript", "aws", "devops", "testing", "performance",
            "security", "스프링", "부트", "java"]


async def seed(small: bool = False):
    num_users = 5 if small else 30
    num_articles = 50 if small else 1000
    max_comments = 3 if small else 6

    print(f"Seeding: {num_users} users, {num_articles} articles, up to {max_comments} comments each")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        users = []
        for i in range(num_users):
            user = UserAccount(
                username=f"user_{i:04d}",
                email=f"user_{i:04d}@example.com",
                nickname=f"User {i}" if i % 3 else None,
            )
            session.add(user)
            users.append(user)
        await session.flush()
        print(f"  Created {len(users)} users")

        total_comments = 0
        for i in range(num_articles):
            tags = " ".join(f"#{name}" for name in random.sample(HASHTAGS, k=random.randint(0, 4)))
            article = await article_service.create_article(
                session,
                ArticleCreate(
                    title=f"Article {i}",
                    content=f"Notes on article {i}. {tags}",
                    user_id=random.choice(users).id,
                ),
            )
            parent_ids = []
            for _ in range(random.randint(0, max_comments)):
                reply_to = random.choice(parent_ids) if parent_ids and random.random() < 0.4 else None
                comment = await comment_service.add_comment(
                    session,
                    article["id"],
                    CommentCreate(
                        content=f"Comment on article {i}",
                        user_id=random.choice(users).id,
                        parent_comment_id=reply_to,
                    ),
                )
                if reply_to is None:
                    parent_ids.append(comment["id"])
                total_comments += 1

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Users: {num_users}")
    print(f"  Articles: {num_articles}")
    print(f"  Comments: {total_comments}")


def main():
    parser = argparse.ArgumentParser(description="Seed the board database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (50 articles)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
