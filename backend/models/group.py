from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.users import user_groups


# A named sub-team within a site
class Group(Base):
    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False, index=True)

    site = relationship("Site", back_populates="groups")
    users = relationship("User", secondary=user_groups, back_populates="groups")
