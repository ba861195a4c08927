from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


class Sale(db.Model):
    """
    Time-bounded promotional discount.

    A Sale is active while start_date <= now <= end_date (both inclusive).
    Covered products are listed in sale_details; a product may sit in several
    simultaneously active sales, in which case the largest discount wins.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_window", "start_date", "end_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    content = db.Column(db.Text, nullable=True)
    banner_url = db.Column(db.String(512), nullable=True)

    discount = db.Column(db.Integer, nullable=False, default=0)  # whole percent

    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)

    details = db.relationship(
        "SaleDetail",
        backref="sale",
        lazy=True,
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Sale id={self.id} title={self.title!r} discount={self.discount}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "banner_url": self.banner_url,
            "discount": self.discount,
            "start_date": to_utc_z(self.start_date),
            "end_date": to_utc_z(self.end_date),
            "product_ids": sorted(d.product_id for d in self.details),
        }


class SaleDetail(db.Model):
    __tablename__ = "sale_details"
    __table_args__ = (
        db.UniqueConstraint("sale_id", "product_id", name="uq_sale_details_sale_product"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
