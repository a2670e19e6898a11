"""
Document schemas for the Showcase API

Each persisted document is a single JSON value:
- projects.json   -> List[Project]
- navigation.json -> List[NavItem]
- content.json    -> SiteContent (singleton, merged over the defaults below)
"""

from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

ProjectStatus = Literal["WIP", "Live", "Archived"]


# Projects
# Stored records are loaded leniently: older documents may lack fields or carry
# extra ones, and both must survive a read-modify-write cycle. New payloads are
# checked by validation.validate_project before they become a Project.
class Project(BaseModel):
    model_config = ConfigDict(extra="allow")

    slug: str
    title: str = ""
    description: str = ""
    imageUrl: str = ""
    linkUrl: str = ""
    tags: List[str] = []
    status: str = "WIP"
    createdAt: str = ""
    updatedAt: str = ""


# Navigation
class NavItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    label: str
    href: str
    order: int = 0


# Site content: every field carries its default so a partial stored document
# validates into a full one.
class Brand(BaseModel):
    name: str = "dieledev"


class Hero(BaseModel):
    title: str = "dieledev"
    titleAccent: str = "showcase"
    subtitle: str = "Creative development projects\nand digital experiments."
    scrollLabel: str = "Our featured works"


class About(BaseModel):
    heading: str = "About"
    text: str = (
        "I'm Jochem — a developer building digital tools, creative experiments, "
        "and everything in between. This showcase collects all my active projects "
        "in one place.\n\nEvery project starts as a curiosity. Some grow into full "
        "products, others stay experiments. All of them teach me something new."
    )


class Contact(BaseModel):
    heading: str = "Contact"
    text: str = "Got a question, an idea, or just want to say hi?"
    email: str = "hello@dieledev.work"
    buttonText: str = "hello@dieledev.work"


class Footer(BaseModel):
    text: str = "© {year} dieledev. All rights reserved."
    subtext: str = "Built with Next.js & Tailwind CSS"


class SiteContent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    brand: Brand = Field(default_factory=Brand)
    hero: Hero = Field(default_factory=Hero)
    about: About = Field(default_factory=About)
    contact: Contact = Field(default_factory=Contact)
    footer: Footer = Field(default_factory=Footer)


# Media
class MediaImage(BaseModel):
    filename: str
    url: str


ProjectList = TypeAdapter(List[Project])
NavItemList = TypeAdapter(List[NavItem])
SiteContentDoc = TypeAdapter(SiteContent)

DEFAULT_CONTENT = SiteContent()
