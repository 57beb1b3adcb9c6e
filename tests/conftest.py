"""Shared fixtures: catalog directories and scenario files written to tmp_path."""

from pathlib import Path

import pytest

VEHICLE_CATALOG = """<?xml version="1.0" encoding="UTF-8"?>
<OpenSCENARIO>
  <FileHeader revMajor="1" revMinor="2" date="2024-01-01T00:00:00" description="Vehicles" author="test"/>
  <Catalog name="VehicleCatalog">
    <Vehicle name="car_white" vehicleCategory="car">
      <ParameterDeclarations>
        <ParameterDeclaration name="MaxSpeed" parameterType="double" value="69.444"/>
        <ParameterDeclaration name="Color" parameterType="string" value="white"/>
      </ParameterDeclarations>
      <Performance maxSpeed="$MaxSpeed" maxAcceleration="10" maxDeceleration="10"/>
      <Properties>
        <Property name="color" value="$Color"/>
      </Properties>
    </Vehicle>
    <Vehicle name="truck" vehicleCategory="truck">
      <Performance maxSpeed="25" maxAcceleration="2" maxDeceleration="5"/>
    </Vehicle>
  </Catalog>
</OpenSCENARIO>
"""

CONTROLLER_CATALOG = """<?xml version="1.0" encoding="UTF-8"?>
<OpenSCENARIO>
  <FileHeader revMajor="1" revMinor="2" date="2024-01-01T00:00:00" description="Controllers" author="test"/>
  <Catalog name="ControllerCatalog">
    <Controller name="driver">
      <ParameterDeclarations>
        <ParameterDeclaration name="Aggressiveness" parameterType="double" value="0.5"/>
      </ParameterDeclarations>
      <Properties>
        <Property name="aggressiveness" value="$Aggressiveness"/>
      </Properties>
    </Controller>
  </Catalog>
</OpenSCENARIO>
"""

# Entries that reference each other without end
CYCLIC_CATALOG = """<?xml version="1.0" encoding="UTF-8"?>
<OpenSCENARIO>
  <Catalog name="LoopCatalog">
    <Maneuver name="ping">
      <Event name="e">
        <ManeuverGroup name="g">
          <CatalogReference catalogName="LoopCatalog" entryName="pong"/>
        </ManeuverGroup>
      </Event>
    </Maneuver>
    <Maneuver name="pong">
      <Event name="e">
        <ManeuverGroup name="g">
          <CatalogReference catalogName="LoopCatalog" entryName="ping"/>
        </ManeuverGroup>
      </Event>
    </Maneuver>
  </Catalog>
</OpenSCENARIO>
"""

SCENARIO = """<?xml version="1.0" encoding="UTF-8"?>
<OpenSCENARIO>
  <FileHeader revMajor="1" revMinor="2" date="2024-01-01T00:00:00" description="Cut in" author="test"/>
  <ParameterDeclarations>
    <ParameterDeclaration name="EgoSpeed" parameterType="double" value="13.9"/>
    <ParameterDeclaration name="EgoMaxSpeed" parameterType="double" value="50"/>
    <ParameterDeclaration name="Weather" parameterType="string" value="dry"/>
    <ParameterDeclaration name="Friction" parameterType="double" value="1.0"/>
    <ParameterDeclaration name="Lanes" parameterType="int" value="2"/>
  </ParameterDeclarations>
  <CatalogLocations>
    <VehicleCatalog>
      <Directory path="catalogs/vehicles"/>
    </VehicleCatalog>
    <ControllerCatalog>
      <Directory path="catalogs/controllers"/>
    </ControllerCatalog>
  </CatalogLocations>
  <RoadNetwork>
    <LogicFile filepath="./road.xodr"/>
  </RoadNetwork>
  <Entities>
    <ScenarioObject name="Ego">
      <CatalogReference catalogName="VehicleCatalog" entryName="car_white">
        <ParameterAssignments>
          <ParameterAssignment parameterRef="MaxSpeed" value="$EgoMaxSpeed"/>
        </ParameterAssignments>
      </CatalogReference>
      <ObjectController>
        <CatalogReference catalogName="ControllerCatalog" entryName="driver"/>
      </ObjectController>
    </ScenarioObject>
  </Entities>
  <Storyboard>
    <Init>
      <Actions>
        <Private entityRef="Ego">
          <PrivateAction>
            <LongitudinalAction>
              <SpeedAction>
                <SpeedActionTarget>
                  <AbsoluteTargetSpeed value="$EgoSpeed"/>
                </SpeedActionTarget>
              </SpeedAction>
            </LongitudinalAction>
          </PrivateAction>
        </Private>
      </Actions>
    </Init>
    <Story name="story">
      <Act name="act">
        <Properties>
          <Property name="weather" value="$Weather"/>
          <Property name="friction" value="$Friction"/>
          <Property name="lanes" value="$Lanes"/>
        </Properties>
      </Act>
    </Story>
  </Storyboard>
</OpenSCENARIO>
"""

DISTRIBUTION = """<?xml version="1.0" encoding="UTF-8"?>
<OpenSCENARIO>
  <FileHeader revMajor="1" revMinor="2" date="2024-01-01T00:00:00" description="Variation" author="test"/>
  <ParameterValueDistribution>
    <ScenarioFile filepath="cut_in.xosc"/>
    <Deterministic>
      <DeterministicSingleParameterDistribution parameterName="EgoSpeed">
        <DistributionSet>
          <Element value="10"/>
          <Element value="20"/>
          <Element value="30"/>
        </DistributionSet>
      </DeterministicSingleParameterDistribution>
      <DeterministicMultiParameterDistribution>
        <ValueSetDistribution>
          <ParameterValueSet>
            <ParameterAssignment parameterRef="Weather" value="rain"/>
            <ParameterAssignment parameterRef="Friction" value="0.5"/>
          </ParameterValueSet>
          <ParameterValueSet>
            <ParameterAssignment parameterRef="Weather" value="dry"/>
            <ParameterAssignment parameterRef="Friction" value="1.0"/>
          </ParameterValueSet>
        </ValueSetDistribution>
      </DeterministicMultiParameterDistribution>
    </Deterministic>
  </ParameterValueDistribution>
</OpenSCENARIO>
"""


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


@pytest.fixture
def catalog_dirs(tmp_path):
    """Vehicle and controller catalogs under tmp_path/catalogs."""
    vehicles = tmp_path / "catalogs" / "vehicles"
    controllers = tmp_path / "catalogs" / "controllers"
    write(vehicles / "vehicles.xosc", VEHICLE_CATALOG)
    write(controllers / "controllers.xosc", CONTROLLER_CATALOG)
    return {"vehicle": vehicles, "controller": controllers}


@pytest.fixture
def cyclic_dir(tmp_path):
    return write(tmp_path / "loop" / "loop.xosc", CYCLIC_CATALOG).parent


@pytest.fixture
def scenario_file(tmp_path, catalog_dirs):
    return write(tmp_path / "cut_in.xosc", SCENARIO)


@pytest.fixture
def distribution_file(tmp_path, scenario_file):
    return write(tmp_path / "cut_in_variation.xosc", DISTRIBUTION)
