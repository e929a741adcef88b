#!/usr/bin/env python3

from cli.common import confirm
from logger import get_logger
from models.category import CATEGORY_KINDS

logger = get_logger()


def cmd_list(args, services):
    """List categories, optionally for one kind."""
    categories = services.categories.find_all(args.kind)

    if not categories:
        logger.info("No categories found.")
        return

    logger.info("\nCategories:")
    logger.info("=" * 80)
    for category in categories:
        extras = ", ".join(v for v in (category.icon, category.color) if v)
        logger.info(
            f"{category.id:>4}  {category.kind:<10}  {category.name}"
            + (f"  ({extras})" if extras else "")
        )
    logger.info(f"\nTotal categories: {len(categories)}")


def cmd_create(args, services):
    """Create a new category."""
    category = services.categories.create(args.name, args.kind, args.icon, args.color)
    logger.info(f"✓ Category created successfully with ID: {category.id}")
    logger.info(f"  Name: {category.name}")
    logger.info(f"  Kind: {category.kind}")


def cmd_update(args, services):
    """Rename a category or change its icon/colour."""
    existing = services.categories.find(args.category_id)
    if existing is None:
        logger.error(f"Category with ID {args.category_id} not found.")
        return

    category = services.categories.update(
        args.category_id,
        args.name or existing.name,
        args.icon if args.icon is not None else existing.icon,
        args.color if args.color is not None else existing.color,
    )
    logger.info(f"✓ Category {category.id} updated: {category.name}")


def cmd_delete(args, services):
    """Delete a category by ID."""
    category = services.categories.find(args.category_id)
    if category is None:
        logger.error(f"Category with ID {args.category_id} not found.")
        return

    logger.info("\nCategory to delete:")
    logger.info(f"  ID: {category.id}")
    logger.info(f"  Name: {category.name}")
    logger.info(f"  Kind: {category.kind}")

    if not args.yes and not confirm("\nAre you sure you want to delete this category?"):
        logger.info("Deletion cancelled.")
        return

    services.categories.delete(category.id)
    logger.info(f"✓ Category '{category.name}' deleted successfully.")


def setup_parser(subparsers):
    """Setup categories subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "categories",
        help="Manage categories",
        description="Create, list, update and delete categories",
    )

    categories_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available category commands",
        dest="subcommand",
        required=True,
    )

    list_parser = categories_subparsers.add_parser("list", help="List categories")
    list_parser.add_argument("--kind", choices=CATEGORY_KINDS, help="Only this kind")
    list_parser.set_defaults(func=cmd_list)

    create_parser = categories_subparsers.add_parser("create", help="Create a category")
    create_parser.add_argument("name", help="Category name")
    create_parser.add_argument("kind", choices=CATEGORY_KINDS, help="Category kind")
    create_parser.add_argument("--icon", help="Display icon name")
    create_parser.add_argument("--color", help="Display colour, e.g. #4CAF50")
    create_parser.set_defaults(func=cmd_create)

    update_parser = categories_subparsers.add_parser("update", help="Update a category")
    update_parser.add_argument("category_id", type=int, help="ID of the category")
    update_parser.add_argument("--name", help="New name")
    update_parser.add_argument("--icon", help="New icon")
    update_parser.add_argument("--color", help="New colour")
    update_parser.set_defaults(func=cmd_update)

    delete_parser = categories_subparsers.add_parser(
        "delete", help="Delete a category by ID"
    )
    delete_parser.add_argument(
        "category_id",
        type=int,
        help="ID of the category to delete",
    )
    delete_parser.add_argument("--yes", action="store_true", help="Skip confirmation")
    delete_parser.set_defaults(func=cmd_delete)
